"""Engine version, stamped on batch output."""

VERSION = "2026.10.0"
