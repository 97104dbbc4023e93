"""
Session controller error types.

All errors inherit from SessionError for easy catching.
"""


class SessionError(Exception):
    """Base exception for session controller failures."""
    pass


class ConfirmationDenied(SessionError):
    """Raised when the operator declines a confirmation prompt."""

    def __init__(self, prompt: str = ""):
        self.prompt = prompt
        super().__init__("Operation cancelled by operator")

