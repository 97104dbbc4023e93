"""
Video URL parsing.

Recognized shapes (id position differs per shape):
- https://www.youtube.com/watch?v={id}
- https://www.youtube.com/embed/{id}
- https://www.youtube.com/live/{id}
- https://youtu.be/{id}

Start offset comes from the `t` or `start` query parameter and may be
written as 90, 90s or 1h2m3s (any component optional).

Parsing runs in two passes. The structural pass reads the URL with
urllib. If that yields nothing (no scheme, unknown host, garbage), a
permissive regex pass over the raw string tries to recover the id and
offset before giving up.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, quote, urlsplit


WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"
EMBED_URL_TEMPLATE = "https://www.youtube.com/embed/{video_id}?enablejsapi=1"

_SECONDS_RE = re.compile(r"^\d+s?$")
_DURATION_RE = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?$", re.IGNORECASE)

_FALLBACK_ID_PATTERNS = (
    re.compile(r"[?&]v=([^&#]+)"),
    re.compile(r"youtu\.be/([^?&#/]+)"),
    re.compile(r"youtube\.com/embed/([^?&#/]+)"),
    re.compile(r"youtube\.com/live/([^?&#/]+)"),
)
_FALLBACK_START_PATTERNS = (
    re.compile(r"[?&]t=([^&#]+)"),
    re.compile(r"[?&]start=([^&#]+)"),
)


@dataclass(frozen=True)
class VideoRef:
    """A video id plus the offset playback should start from."""

    video_id: str
    start_seconds: int = 0


def parse_start_offset(value: Optional[str]) -> int:
    """
    Parse a start-offset parameter into whole seconds.

    Accepts "90", "90s" and "1h2m3s"-style durations. Invalid, empty or
    all-zero values normalize to 0.
    """
    if value is None:
        return 0

    v = str(value).strip()
    if not v:
        return 0

    if _SECONDS_RE.match(v):
        return int(v.rstrip("s"))

    m = _DURATION_RE.match(v)
    if not m:
        return 0

    hours, minutes, seconds = (int(g) if g else 0 for g in m.groups())
    total = hours * 3600 + minutes * 60 + seconds
    return total if total > 0 else 0


def _first_param(query: dict, *names: str) -> Optional[str]:
    for name in names:
        values = query.get(name)
        if values and values[0]:
            return values[0]
    return None


def _path_segment(path: str, position: int) -> Optional[str]:
    parts = path.split("/")
    if len(parts) > position and parts[position]:
        return parts[position]
    return None


def _parse_structured(url: str) -> Optional[VideoRef]:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return None

    host = (parts.hostname or "").lower()
    path = parts.path or ""
    query = parse_qs(parts.query)

    video_id = None
    start = 0

    if "youtube.com" in host:
        if path.startswith("/watch"):
            video_id = _first_param(query, "v")
            start = parse_start_offset(_first_param(query, "t", "start"))
        elif path.startswith("/embed/"):
            video_id = _path_segment(path, 2)
            start = parse_start_offset(_first_param(query, "start", "t"))
        elif path.startswith("/live/"):
            video_id = _path_segment(path, 2)
            start = parse_start_offset(_first_param(query, "t", "start"))
    elif host == "youtu.be":
        video_id = _path_segment(path, 1)
        start = parse_start_offset(_first_param(query, "t"))

    if not video_id:
        return None
    return VideoRef(video_id=video_id, start_seconds=start)


def _parse_permissive(url: str) -> Optional[VideoRef]:
    video_id = None
    for pattern in _FALLBACK_ID_PATTERNS:
        m = pattern.search(url)
        if m:
            video_id = m.group(1)
            break

    if not video_id:
        return None

    start_value = None
    for pattern in _FALLBACK_START_PATTERNS:
        m = pattern.search(url)
        if m:
            start_value = m.group(1)
            break

    return VideoRef(video_id=video_id, start_seconds=parse_start_offset(start_value))


def parse_video_ref(url: str) -> Optional[VideoRef]:
    """
    Extract a video id and start offset from a video URL.

    Args:
        url: Raw URL as typed or pasted by the operator

    Returns:
        VideoRef, or None when neither the structural nor the permissive
        pass can recover an id
    """
    url = (url or "").strip()
    if not url:
        return None

    try:
        ref = _parse_structured(url)
    except ValueError:
        # urlsplit rejects e.g. malformed IPv6 netlocs
        ref = None

    if ref is not None:
        return ref
    return _parse_permissive(url)


def watch_url(video_id: Optional[str]) -> str:
    """Canonical watch URL for a video id, or "" when there is no video."""
    if not video_id:
        return ""
    return WATCH_URL_TEMPLATE.format(video_id=video_id)


def embed_url(video_id: str, start_seconds: int = 0, origin: Optional[str] = None) -> str:
    """
    Build the iframe embed URL for a video.

    The JS API flag is always set so a player object can take over the
    frame once the embed API reports ready.
    """
    url = EMBED_URL_TEMPLATE.format(video_id=video_id)
    if start_seconds and start_seconds > 0:
        url += f"&start={int(start_seconds)}"
    if origin:
        url += f"&origin={quote(origin, safe='')}"
    return url
