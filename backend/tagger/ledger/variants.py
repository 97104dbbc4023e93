"""
Record variants.

The tagger ships in three flavours that share one generic record shape:

- event:      one row per tag press, stamped with the video time
- life:       one row per player life, with a score and the full tag set
- life_basic: same as life with a smaller tag set

A variant fixes the tag names, the CSV schema, the storage key and the
name of the records list in the persisted blob. Nothing else differs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class RecordVariant(str, Enum):
    """Enumeration of supported ledger variants."""

    EVENT = "event"
    LIFE = "life"
    LIFE_BASIC = "life_basic"


class RecordKind(str, Enum):
    """Discriminator stored on every record."""

    EVENT = "event"
    LIFE = "life"


GOOD_TAGS: Tuple[str, ...] = (
    "good_route",
    "got_spawns",
    "good_trade",
    "played_life",
    "flank",
    "free_kill",
)

BAD_TAGS: Tuple[str, ...] = (
    "bad_route",
    "lost_spawns",
    "bad_trade",
    "gave_up_life",
    "free_death",
)

BASIC_GOOD_TAGS: Tuple[str, ...] = ("good_route", "good_trade", "free_kill")
BASIC_BAD_TAGS: Tuple[str, ...] = ("bad_route", "bad_trade", "free_death")

EVENT_CSV_COLUMNS: Tuple[str, ...] = (
    "match_id",
    "game_mode",
    "player",
    "event",
    "value",
    "video_time",
    "youtube_url",
)

LIFE_CSV_PREFIX: Tuple[str, ...] = (
    "match_id",
    "game_mode",
    "player",
    "life_num",
    "score",
)


@dataclass(frozen=True)
class VariantSchema:
    """
    Everything that differs between variants.

    Pure data. Looked up once at startup and passed to the ledger,
    exporter and persistence adapter.
    """

    variant: RecordVariant
    kind: RecordKind
    good_tags: Tuple[str, ...]
    bad_tags: Tuple[str, ...]
    storage_key: str
    records_key: str
    file_prefix: str
    noun: str

    @property
    def tags(self) -> Tuple[str, ...]:
        """All tag names, good first."""
        return self.good_tags + self.bad_tags

    @property
    def csv_columns(self) -> Tuple[str, ...]:
        """Fixed CSV header for this variant."""
        if self.kind == RecordKind.EVENT:
            return EVENT_CSV_COLUMNS
        return LIFE_CSV_PREFIX + self.good_tags + self.bad_tags

    def has_tag(self, tag: str) -> bool:
        return tag in self.good_tags or tag in self.bad_tags


VARIANTS = {
    RecordVariant.EVENT: VariantSchema(
        variant=RecordVariant.EVENT,
        kind=RecordKind.EVENT,
        good_tags=GOOD_TAGS,
        bad_tags=BAD_TAGS,
        storage_key="pff_esports_session_v1",
        records_key="events",
        file_prefix="events",
        noun="events",
    ),
    RecordVariant.LIFE: VariantSchema(
        variant=RecordVariant.LIFE,
        kind=RecordKind.LIFE,
        good_tags=GOOD_TAGS,
        bad_tags=BAD_TAGS,
        storage_key="pff_esports_lives_v1",
        records_key="lives",
        file_prefix="lives",
        noun="lives",
    ),
    RecordVariant.LIFE_BASIC: VariantSchema(
        variant=RecordVariant.LIFE_BASIC,
        kind=RecordKind.LIFE,
        good_tags=BASIC_GOOD_TAGS,
        bad_tags=BASIC_BAD_TAGS,
        storage_key="pff_esports_lives_basic_v1",
        records_key="lives",
        file_prefix="lives",
        noun="lives",
    ),
}


def get_variant(variant: Union[str, RecordVariant, VariantSchema]) -> VariantSchema:
    """
    Resolve a variant name to its schema.

    Raises:
        ValueError: If the name is not a known variant
    """
    if isinstance(variant, VariantSchema):
        return variant
    try:
        return VARIANTS[RecordVariant(variant)]
    except ValueError:
        valid = [v.value for v in RecordVariant]
        raise ValueError(f"Unknown variant '{variant}'. Valid variants: {valid}") from None
