"""
Identifier parsers.

Pure functions that extract identifiers from operator-supplied URLs:
- Match id from a match-page URL
- Video id and start offset from a video URL

Parsers never raise on bad input. They return None and let the caller
decide how to surface the problem.
"""

from .errors import ParseError, InvalidMatchUrlError, InvalidVideoUrlError
from .match_url import DEFAULT_MATCH_HOST, parse_match_id, match_url_hint
from .video_url import (
    VideoRef,
    parse_video_ref,
    parse_start_offset,
    watch_url,
    embed_url,
)

__all__ = [
    "ParseError",
    "InvalidMatchUrlError",
    "InvalidVideoUrlError",
    "DEFAULT_MATCH_HOST",
    "parse_match_id",
    "match_url_hint",
    "VideoRef",
    "parse_video_ref",
    "parse_start_offset",
    "watch_url",
    "embed_url",
]
