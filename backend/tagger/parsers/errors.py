"""
Parser-specific error types.
"""


class ParseError(Exception):
    """Base exception for identifier parsing failures."""
    pass


class InvalidMatchUrlError(ParseError):
    """Raised when a match URL does not match the expected page shape."""

    def __init__(self, url: str, host: str):
        self.url = url
        self.host = host
        super().__init__(
            f"Invalid match URL. Expected https://{host}/match/{{id}}/{{slug}}"
        )


class InvalidVideoUrlError(ParseError):
    """Raised when no video id can be recovered from a URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__("Invalid YouTube URL")
