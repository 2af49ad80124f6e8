"""
RoRo Carrier Rule Calculator
============================

Interactive CLI tool to run one cargo line through the carrier rule engine
against the bundled reference tables.

Usage:
    python -m carrier_rules.scripts.calculator
"""

from datetime import date

from carrier_rules.data import load_rule_tables
from carrier_rules.dtos import CargoInput, ProcessCargoResult
from carrier_rules.engine import CarrierRuleEngine
from carrier_rules.rules import RuleSnapshot
from carrier_rules.version import VERSION


DEFAULT_CARRIER = "GRIMALDI"


def get_user_input() -> dict:
    """Prompt user for cargo details."""
    print("\n=== RoRo Carrier Rule Calculator ===")
    print(f"Version: {VERSION}\n")

    carrier = input(f"Carrier code [default: {DEFAULT_CARRIER}]: ").strip() or DEFAULT_CARRIER
    pod = input("POD port code (e.g., ABJ, blank for none): ").strip()
    vessel = input("Vessel name (blank for none): ").strip()

    # Dimensions
    length = float(input("Length (cm): "))
    width = float(input("Width (cm): "))
    height = float(input("Height (cm): "))
    weight = float(input("Weight (kg): "))
    cbm_input = input("CBM [default: L x W x H]: ").strip()
    cbm = float(cbm_input) if cbm_input else round(length * width * height / 1_000_000, 4)
    units_input = input("Units [default: 1]: ").strip()

    category = input("Vehicle category (blank to classify): ").strip()
    freight_input = input("Basic freight amount (blank if unknown): ").strip()
    flags = input("Flags, comma separated (e.g., empty,non_self_propelled): ").strip()

    date_input = input(f"\nRules as of (YYYY-MM-DD) [default: {date.today()}]: ").strip()

    return {
        "carrier_code": carrier,
        "pod_code": pod or None,
        "vessel_name": vessel or None,
        "length_cm": length,
        "width_cm": width,
        "height_cm": height,
        "weight_kg": weight,
        "cbm": cbm,
        "unit_count": int(units_input) if units_input else 1,
        "category": category or None,
        "basic_freight_amount": float(freight_input) if freight_input else None,
        "flags": tuple(f.strip() for f in flags.split(",") if f.strip()),
        "as_of": date.fromisoformat(date_input) if date_input else date.today(),
    }


def create_cargo(values: dict, snapshot: RuleSnapshot) -> CargoInput:
    """
    Build a CargoInput from user input, resolving carrier and port codes.

    Raises:
        ValueError: If the carrier or port code is not in the snapshot
    """
    carrier = snapshot.carrier_by_code(values["carrier_code"])
    if carrier is None:
        raise ValueError(f"Unknown carrier code '{values['carrier_code']}'")

    pod_port_id = None
    if values.get("pod_code"):
        port = snapshot.port_by_code(values["pod_code"])
        if port is None:
            raise ValueError(f"Unknown port code '{values['pod_code']}'")
        pod_port_id = port.id

    return CargoInput(
        carrier_id=carrier.id,
        pod_port_id=pod_port_id,
        length_cm=values["length_cm"],
        width_cm=values["width_cm"],
        height_cm=values["height_cm"],
        cbm=values["cbm"],
        weight_kg=values["weight_kg"],
        unit_count=values.get("unit_count", 1),
        category=values.get("category"),
        vessel_name=values.get("vessel_name"),
        basic_freight_amount=values.get("basic_freight_amount"),
        flags=tuple(values.get("flags", ())),
    )


def print_results(result: ProcessCargoResult, cargo: CargoInput) -> None:
    """Print engine results."""
    measure = result.chargeable_measure

    print("\n" + "=" * 50)
    print("CALCULATION RESULTS")
    print("=" * 50)

    # Input summary
    print(f"\nCargo: {cargo.length_cm:g}x{cargo.width_cm:g}x{cargo.height_cm:g} cm, "
          f"{cargo.weight_kg:g} kg, {cargo.cbm:g} cbm, {cargo.unit_count} unit(s)")

    # Classification
    print(f"\nVehicle category: {result.classified_vehicle_category or 'unclassified'}")
    print(f"Category group:   {result.matched_category_group or '-'}")

    # Acceptance
    print(f"\nAcceptance: {result.acceptance_status.value}")
    if result.violations:
        print(f"  Violations: {', '.join(result.violations)}")
    if result.approvals_required:
        print(f"  Approvals required: {', '.join(result.approvals_required)}")
    if result.warnings:
        print(f"  Warnings: {', '.join(result.warnings)}")

    # Loading meters
    print(f"\nBase LM:       {measure.base_lm:.4f}")
    print(f"Chargeable LM: {measure.chargeable_lm:.4f}", end="")
    if measure.applied_transform_rule_id is not None:
        print(f" (transform rule {measure.applied_transform_rule_id})")
    else:
        print()

    # Surcharges
    print("\n--- Surcharges ---")
    if not result.surcharge_events:
        print("None")
    for event in result.surcharge_events:
        print(f"{event.event_code:<22} {event.qty:>8.3f} x {event.amount:>9.2f} = {event.total:>9.2f}")
        print(f"  {event.reason}")
    print(f"{'':<22} {'':>8}   {'':>9}   {'-' * 9}")
    print(f"{'TOTAL':<22} {'':>8}   {'':>9}   {result.surcharge_total:>9.2f}")

    # Quote lines
    if result.quote_line_drafts:
        print("\n--- Quote Lines ---")
        for draft in result.quote_line_drafts:
            print(f"Article {draft.article_id:<8} qty {draft.qty:g} ({draft.source_event_code})")
    print()


def main():
    """Main entry point."""
    try:
        # Get user input
        values = get_user_input()

        # Load rules once for the chosen date
        engine = CarrierRuleEngine(load_rule_tables())
        snapshot = engine.load_snapshot(values["as_of"])

        # Run through pipeline
        cargo = create_cargo(values, snapshot)
        result = engine.process_cargo(cargo, snapshot)

        # Print results
        print_results(result, cargo)

    except KeyboardInterrupt:
        print("\n\nCancelled.")
    except Exception as e:
        print(f"\nError: {e}")
        raise


if __name__ == "__main__":
    main()
