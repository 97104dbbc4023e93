"""
Display helpers shared by the controller prompts, the CLI and the API.
"""

from typing import Any

from ..ledger.models import EventRecord


def format_time(total_seconds: Any) -> str:
    """
    Format seconds as m:ss, or h:mm:ss from one hour up.

    Garbage and negative input format as 0:00.
    """
    try:
        s = max(0, int(float(total_seconds or 0)))
    except (TypeError, ValueError):
        s = 0

    hours, rem = divmod(s, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def record_title(record) -> str:
    """One-line title used in lists and confirmation prompts."""
    if isinstance(record, EventRecord):
        return f"{format_time(record.video_time)} - {record.event.upper()}"
    return f"Life {record.sequence_number} - score {record.score}"


def record_meta(record) -> str:
    """Secondary line: player, mode and match id when present."""
    match_str = f" | ID: {record.match_id}" if record.match_id else ""
    return f"{record.player} | {record.mode}{match_str}"


def delete_prompt(record) -> str:
    if isinstance(record, EventRecord):
        return f"Delete {record.event} at {format_time(record.video_time)}?"
    return f"Delete life {record.sequence_number}?"
