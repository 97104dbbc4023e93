"""
Session data models.

The session is the single working state of one tagging tab: the header
fields the operator fills in plus the ledger contents.

Session values handed out by the controller are snapshots. Mutating a
snapshot has no effect on the controller.
"""

from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..ledger.models import Record
from ..parsers.video_url import watch_url


class CropPreference(str, Enum):
    """
    Display-only framing of the embedded video.

    Orthogonal to data correctness. Never exported.
    """

    NONE = "none"
    FULL = "full"
    CENTER = "center"
    TOP_LEFT = "tl"
    TOP_RIGHT = "tr"
    BOTTOM_LEFT = "bl"
    BOTTOM_RIGHT = "br"

    @classmethod
    def coerce(cls, value: Any) -> "CropPreference":
        """Unknown or missing values fall back to NONE."""
        try:
            return cls(value)
        except ValueError:
            return cls.NONE


class SessionHeader(BaseModel):
    """
    Operator-controlled session fields.

    match_id is derived from match_url by the controller. It is None
    while the URL is blank or invalid.
    """

    model_config = ConfigDict(extra="forbid")

    match_url: str = ""
    match_id: Optional[str] = None
    player: str = ""
    mode: str = ""
    video_id: Optional[str] = None
    video_start_offset_seconds: int = Field(default=0, ge=0)
    crop: CropPreference = CropPreference.NONE

    @field_validator("crop", mode="before")
    @classmethod
    def known_crop(cls, v: Any) -> CropPreference:
        return CropPreference.coerce(v)

    @property
    def video_url(self) -> str:
        """Canonical watch URL, or "" without a video."""
        return watch_url(self.video_id)

    @property
    def missing_labels(self) -> List[str]:
        """Header fields a new record would be created without."""
        missing = []
        if not self.match_id:
            missing.append("match")
        if not self.player:
            missing.append("player")
        if not self.mode:
            missing.append("mode")
        return missing


class Session(SessionHeader):
    """
    Full session: header fields plus the ledger contents.

    This is the unit that gets persisted, rendered and exported.
    """

    records: List[Record] = Field(default_factory=list)
    next_sequence_number: int = Field(default=1, ge=1)
    editing_index: Optional[int] = None

    def header(self) -> SessionHeader:
        return SessionHeader(**self.model_dump(include=set(SessionHeader.model_fields)))

    def records_by_recency(self) -> List[Tuple[int, Record]]:
        """(index, record) pairs newest first, for display lists."""
        pairs = list(enumerate(self.records))
        pairs.sort(key=lambda pair: pair[1].sequence_number, reverse=True)
        return pairs

    @property
    def editing_record(self) -> Optional[Record]:
        if self.editing_index is None:
            return None
        if 0 <= self.editing_index < len(self.records):
            return self.records[self.editing_index]
        return None


def default_session() -> Session:
    """The documented empty session: no labels, no records, crop none."""
    return Session()
