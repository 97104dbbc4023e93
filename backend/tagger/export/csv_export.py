"""
CSV export of the session ledger.

PURE PRESENTATION LAYER:
- No filesystem writes (returns strings only)
- No mutation of the session or its records
- Deterministic: same records and session give byte-identical output
- Rows are always in ascending sequence order, whatever the display order

Cells are quoted only when they contain a comma, a double quote or a
newline; embedded quotes are doubled. Rows are joined with "\n" and the
file has no trailing newline. csv.writer is not used here: QUOTE_MINIMAL
also quotes cells holding a bare "\r", which this format leaves as is.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Union

from ..ledger.models import EventRecord, LifeRecord
from ..ledger.variants import RecordKind, RecordVariant, VariantSchema, get_variant
from ..session.models import SessionHeader
from .errors import EmptyExportError

logger = logging.getLogger(__name__)


MISSING_MATCH_SLUG = "noid"
MISSING_PLAYER_SLUG = "player"
MISSING_MODE_SLUG = "mode"

_NEEDS_QUOTING = re.compile(r'[",\n]')
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class CsvExport:
    """A ready-to-download export."""

    file_name: str
    text: str
    row_count: int


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def escape_cell(value: Any) -> str:
    """Stringify a cell and quote it if it needs quoting."""
    text = _cell(value)
    if _NEEDS_QUOTING.search(text):
        return '"' + text.replace('"', '""') + '"'
    return text


def _slug(value: Optional[str], placeholder: str) -> str:
    if not value:
        return placeholder
    return _WHITESPACE.sub("_", value)


class CsvExporter:
    """
    Serializes ledger records to CSV for one variant.

    The column set and order are fixed by the variant.
    """

    def __init__(self, variant: Union[str, RecordVariant, VariantSchema] = RecordVariant.EVENT):
        self._schema = get_variant(variant)

    @property
    def columns(self) -> Sequence[str]:
        return self._schema.csv_columns

    def to_csv(self, records: Iterable[Union[EventRecord, LifeRecord]], session: SessionHeader) -> str:
        """
        Serialize records to CSV text.

        Args:
            records: Records in any order
            session: Session header (supplies the video URL column)

        Returns:
            Header row plus one row per record, ascending by sequence

        Raises:
            EmptyExportError: If there are no records
        """
        ordered = sorted(records, key=lambda r: r.sequence_number)
        if not ordered:
            raise EmptyExportError(self._schema.noun)

        rows: List[List[Any]] = [list(self.columns)]
        for record in ordered:
            rows.append(self._row(record, session))

        return "\n".join(",".join(escape_cell(c) for c in row) for row in rows)

    def export(self, records: Iterable[Union[EventRecord, LifeRecord]], session: SessionHeader) -> CsvExport:
        """
        Build the CSV text and its file name.

        Raises:
            EmptyExportError: If there are no records
        """
        records = list(records)
        text = self.to_csv(records, session)
        file_name = self.suggested_file_name(session)
        logger.info(f"Exported {len(records)} {self._schema.noun} as {file_name}")
        return CsvExport(file_name=file_name, text=text, row_count=len(records) + 1)

    def suggested_file_name(self, session: SessionHeader) -> str:
        """
        Deterministic file name: {prefix}_{match}_{player}_{mode}.csv

        Missing parts use fixed placeholders; whitespace runs become "_".
        """
        id_slug = _slug(session.match_id, MISSING_MATCH_SLUG)
        player_slug = _slug(session.player, MISSING_PLAYER_SLUG)
        mode_slug = _slug(session.mode, MISSING_MODE_SLUG)
        return f"{self._schema.file_prefix}_{id_slug}_{player_slug}_{mode_slug}.csv"

    def _row(self, record: Union[EventRecord, LifeRecord], session: SessionHeader) -> List[Any]:
        if self._schema.kind == RecordKind.EVENT:
            return [
                record.match_id,
                record.mode,
                record.player,
                record.event,
                record.value or 0,
                record.video_time or 0,
                session.video_url,
            ]

        tags = record.tags
        return [
            record.match_id,
            record.mode,
            record.player,
            record.sequence_number,
            record.score,
            *[bool(tags.get(t, False)) for t in self._schema.good_tags],
            *[bool(tags.get(t, False)) for t in self._schema.bad_tags],
        ]
