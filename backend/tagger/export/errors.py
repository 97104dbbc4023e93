"""
Export-specific error types.
"""


class ExportError(Exception):
    """Base exception for export failures."""
    pass


class EmptyExportError(ExportError):
    """Raised when there are no records to export."""

    def __init__(self, noun: str = "records"):
        self.noun = noun
        super().__init__(f"No {noun} to export.")
