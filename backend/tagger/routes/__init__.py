"""HTTP routes for the tagging UI."""

from . import session

__all__ = ["session"]
