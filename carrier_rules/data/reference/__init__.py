"""Reference rule tables (Grimaldi West Africa sample) and configuration."""

from pathlib import Path

import polars as pl

from .loading_meter import CM2_PER_LM, LM_LANE_WIDTH_M, STANDARD_LANE_WIDTH_CM

REFERENCE_DIR = Path(__file__).parent
TABLES_DIR = REFERENCE_DIR / "tables"


def load_table(name: str, directory: Path | None = None) -> pl.DataFrame:
    """Load one rule table from <directory>/<name>.csv."""
    directory = Path(directory) if directory is not None else TABLES_DIR
    return pl.read_csv(directory / f"{name}.csv", infer_schema_length=None)


def load_rule_tables(directory: Path | None = None) -> dict[str, pl.DataFrame]:
    """
    Load every rule table CSV in a directory.

    Table names are the file stems (e.g. surcharge_rules.csv ->
    "surcharge_rules"), matching what RuleSnapshot.load() expects.

    Args:
        directory: Folder of CSV exports, defaults to the bundled sample

    Returns:
        Table name -> DataFrame
    """
    directory = Path(directory) if directory is not None else TABLES_DIR
    return {
        path.stem: load_table(path.stem, directory)
        for path in sorted(directory.glob("*.csv"))
    }


__all__ = [
    "REFERENCE_DIR",
    "TABLES_DIR",
    "load_table",
    "load_rule_tables",
    "CM2_PER_LM",
    "LM_LANE_WIDTH_M",
    "STANDARD_LANE_WIDTH_CM",
]
