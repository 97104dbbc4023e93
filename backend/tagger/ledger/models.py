"""
Record data models.

A record is one tagged gameplay moment. Event records carry the video
time of the tag press. Life records carry a score and a fixed set of
boolean tags.

Records keep unknown fields. Older persisted sessions can carry keys
this version no longer reads and they must survive a load/save cycle.
"""

from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecordBase(BaseModel):
    """
    Fields shared by every record.

    match_id, player and mode are copied from the session when the
    record is created and never recomputed afterwards.
    """

    model_config = ConfigDict(extra="allow")

    match_id: str = ""
    player: str = ""
    mode: str = ""
    sequence_number: int = Field(ge=1)

    @field_validator("match_id", "player", "mode", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """Session labels may be unset; records store them as ""."""
        return "" if v is None else v


class EventRecord(RecordBase):
    """A single tag press stamped with the video position."""

    kind: Literal["event"] = "event"
    event: str
    value: int = 1
    video_time: int = Field(default=0, ge=0)

    @field_validator("value", mode="before")
    @classmethod
    def value_is_flag(cls, v: Any) -> int:
        """Value is a 0/1 flag; anything other than 1 counts as 0."""
        try:
            return 1 if float(v) == 1 else 0
        except (TypeError, ValueError):
            return 0


class LifeRecord(RecordBase):
    """One player life with a score and boolean tag fields."""

    kind: Literal["life"] = "life"
    score: int = 0
    tags: Dict[str, bool] = Field(default_factory=dict)

    @property
    def life_num(self) -> int:
        return self.sequence_number


Record = Annotated[Union[EventRecord, LifeRecord], Field(discriminator="kind")]

RECORD_MODELS = {
    "event": EventRecord,
    "life": LifeRecord,
}

# Keys the ledger owns; callers cannot set them through append/update
IDENTITY_FIELDS = ("sequence_number", "kind")
