"""
Engine Errors

Both errors subclass ValueError so callers that only know about
"bad input" can catch them together.
"""


class CargoValidationError(ValueError):
    """Cargo input is malformed; the line must not be priced."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid cargo input:\n  " + "\n  ".join(self.errors))


class RuleConfigurationError(ValueError):
    """Rule table rows cannot be turned into a usable snapshot."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Rule configuration errors:\n  " + "\n  ".join(self.errors))
