"""
Ledger-specific error types.

All errors inherit from LedgerError for easy catching.
Errors are explicit and provide actionable messages.
"""


class LedgerError(Exception):
    """Base exception for all ledger failures."""
    pass


class RecordNotFoundError(LedgerError):
    """Raised when an index does not point at a record."""

    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(f"No record at index {index} (ledger holds {count})")


class RecordValidationError(LedgerError):
    """Raised when record fields fail validation."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnknownTagError(LedgerError):
    """Raised when a tag name is not part of the active variant."""

    def __init__(self, tag: str, variant: str):
        self.tag = tag
        self.variant = variant
        super().__init__(f"Unknown tag '{tag}' for variant '{variant}'")
