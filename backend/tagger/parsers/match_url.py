"""
Match URL parsing.

Valid shape: https://<host>/match/{match_id}/{slug}

The match id is returned verbatim. No normalization, no lookups.
Anything that does not match the shape exactly is rejected.
"""

import re
from functools import lru_cache
from typing import Optional

from .errors import InvalidMatchUrlError


DEFAULT_MATCH_HOST = "www.breakingpoint.gg"


@lru_cache(maxsize=8)
def _match_pattern(host: str) -> "re.Pattern[str]":
    return re.compile(
        rf"^https://{re.escape(host)}/match/([^/]+)/.+",
        re.IGNORECASE,
    )


def parse_match_id(url: str, host: str = DEFAULT_MATCH_HOST) -> Optional[str]:
    """
    Extract the match id from a match-page URL.

    Args:
        url: Raw URL as typed by the operator (leading/trailing
             whitespace is ignored)
        host: Expected host of the match site

    Returns:
        The match id, or None if the URL does not have the expected shape
    """
    if not url:
        return None

    m = _match_pattern(host).match(url.strip())
    return m.group(1) if m else None


def match_url_hint(host: str = DEFAULT_MATCH_HOST) -> str:
    """Inline error message shown for a rejected match URL."""
    return str(InvalidMatchUrlError("", host))
