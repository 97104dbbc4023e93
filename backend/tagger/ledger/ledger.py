"""
In-memory record ledger.

Holds the ordered records of the current session and enforces the
numbering invariant:

- sequence numbers are dense and start at 1
- append takes the next number and bumps the counter
- remove renumbers the survivors 1..N in their existing order and
  resets the counter to N + 1

Sequence numbers are NOT permanent identifiers. They are a display and
export ordering that is recomputed after every deletion.

The ledger does not persist or render anything. The session controller
calls it and then persists and renders.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from .errors import RecordNotFoundError, RecordValidationError, UnknownTagError
from .models import IDENTITY_FIELDS, RECORD_MODELS, EventRecord, LifeRecord, Record
from .variants import RecordKind, RecordVariant, VariantSchema, get_variant

logger = logging.getLogger(__name__)

_record_adapter: TypeAdapter = TypeAdapter(Record)

AnyRecord = Union[EventRecord, LifeRecord]


class Ledger:
    """
    Ordered collection of records for one session.

    Records are stored in ascending sequence order. Callers receive
    copies, so the invariant can only change through ledger methods.
    """

    def __init__(
        self,
        variant: Union[str, RecordVariant, VariantSchema] = RecordVariant.EVENT,
        records: Iterable[Union[AnyRecord, Mapping[str, Any]]] = (),
        next_sequence_number: Optional[int] = None,
    ):
        """
        Initialize ledger.

        Args:
            variant: Variant name or schema
            records: Existing records in stored order (models or dicts)
            next_sequence_number: Stored counter; repaired to count + 1
                                  when it disagrees with the records
        """
        self._schema = get_variant(variant)
        self._records: List[AnyRecord] = [self._load_record(r) for r in records]
        self._next_sequence_number = len(self._records) + 1

        numbers = [r.sequence_number for r in self._records]
        if numbers != list(range(1, len(numbers) + 1)):
            logger.warning(f"Stored sequence numbers not dense, renumbering {len(numbers)} records")
            self._renumber()
        if next_sequence_number is not None and next_sequence_number != self._next_sequence_number:
            logger.debug(
                f"Repaired sequence counter {next_sequence_number} -> {self._next_sequence_number}"
            )

    @property
    def schema(self) -> VariantSchema:
        return self._schema

    @property
    def next_sequence_number(self) -> int:
        return self._next_sequence_number

    # Queries

    def count(self) -> int:
        return len(self._records)

    def get(self, index: int) -> AnyRecord:
        """
        Retrieve a copy of the record at a position.

        Raises:
            RecordNotFoundError: If index is out of range
        """
        self._check_index(index)
        return self._records[index].model_copy(deep=True)

    def records(self) -> Tuple[AnyRecord, ...]:
        """All records in stored (ascending sequence) order."""
        return tuple(r.model_copy(deep=True) for r in self._records)

    def list_sorted_by_recency(self) -> List[AnyRecord]:
        """Records newest first, for display."""
        return sorted(self.records(), key=lambda r: r.sequence_number, reverse=True)

    def list_sorted_for_export(self) -> List[AnyRecord]:
        """Records strictly ascending by sequence number, for export."""
        return sorted(self.records(), key=lambda r: r.sequence_number)

    # Mutations

    def append(self, fields: Mapping[str, Any]) -> AnyRecord:
        """
        Create a record at the end of the ledger.

        Existing records are never touched.

        Args:
            fields: Record fields; sequence_number and kind are ignored

        Returns:
            Copy of the created record

        Raises:
            RecordValidationError: If fields are invalid
            UnknownTagError: If a tag is not part of the variant
        """
        record = self._build_record(dict(fields), {}, self._next_sequence_number)
        self._records.append(record)
        self._next_sequence_number += 1
        logger.debug(f"Appended record #{record.sequence_number}")
        return record.model_copy(deep=True)

    def update(self, index: int, fields: Mapping[str, Any]) -> AnyRecord:
        """
        Replace the mutable fields of the record at a position.

        sequence_number, kind and position are preserved. Fields not
        given carry over from the current record.

        Raises:
            RecordNotFoundError: If index is out of range
            RecordValidationError: If fields are invalid
            UnknownTagError: If a tag is not part of the variant
        """
        self._check_index(index)
        current = self._records[index]
        base = current.model_dump()
        record = self._build_record(dict(fields), base, current.sequence_number)
        self._records[index] = record
        logger.debug(f"Updated record #{record.sequence_number}")
        return record.model_copy(deep=True)

    def remove(self, index: int) -> AnyRecord:
        """
        Delete the record at a position and renumber the survivors.

        Returns:
            The removed record (with its pre-removal sequence number)

        Raises:
            RecordNotFoundError: If index is out of range
        """
        self._check_index(index)
        removed = self._records.pop(index)
        self._renumber()
        logger.debug(
            f"Removed record #{removed.sequence_number}, {len(self._records)} remain"
        )
        return removed

    def clear(self) -> None:
        """Drop every record and reset the counter."""
        self._records.clear()
        self._next_sequence_number = 1

    # Internals

    def _renumber(self) -> None:
        self._records = [
            r.model_copy(update={"sequence_number": i})
            for i, r in enumerate(self._records, start=1)
        ]
        self._next_sequence_number = len(self._records) + 1

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or index < 0 or index >= len(self._records):
            raise RecordNotFoundError(index, len(self._records))

    def _load_record(self, record: Union[AnyRecord, Mapping[str, Any]]) -> AnyRecord:
        if isinstance(record, (EventRecord, LifeRecord)):
            loaded = record.model_copy(deep=True)
        else:
            data = dict(record)
            data.setdefault("kind", self._schema.kind.value)
            try:
                loaded = _record_adapter.validate_python(data)
            except ValidationError as e:
                raise RecordValidationError(f"Invalid stored record: {e}") from e
        if loaded.kind != self._schema.kind.value:
            raise RecordValidationError(
                f"Stored {loaded.kind} record does not belong to the {self._schema.variant.value} ledger"
            )
        return loaded

    def _build_record(
        self,
        fields: Dict[str, Any],
        base: Dict[str, Any],
        sequence_number: int,
    ) -> AnyRecord:
        for key in IDENTITY_FIELDS:
            fields.pop(key, None)
            base.pop(key, None)

        if self._schema.kind == RecordKind.LIFE:
            base_tags = base.pop("tags", None) or {}
            fields["tags"] = self._normalize_tags(base_tags, fields)
        else:
            event = fields.get("event", base.get("event"))
            if not event:
                raise RecordValidationError("Event records require an event name")
            if event != base.get("event") and not self._schema.has_tag(event):
                raise UnknownTagError(event, self._schema.variant.value)

        data = {**base, **fields}
        data["sequence_number"] = sequence_number
        data["kind"] = self._schema.kind.value

        model = RECORD_MODELS[self._schema.kind.value]
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise RecordValidationError(str(e)) from e

    def _normalize_tags(self, base_tags: Mapping[str, Any], fields: Dict[str, Any]) -> Dict[str, bool]:
        """
        Produce the full tag map for a life record.

        Every tag of the variant is present. Tags may be given as a
        "tags" mapping, which replaces the current tags, or as top-level
        boolean fields, which override single tags.
        """
        if "tags" in fields:
            base_tags = {}
        tags = {t: bool(base_tags.get(t, False)) for t in self._schema.tags}

        given = fields.pop("tags", None) or {}
        for name, value in given.items():
            if not self._schema.has_tag(name):
                raise UnknownTagError(name, self._schema.variant.value)
            tags[name] = bool(value)

        for name in self._schema.tags:
            if name in fields:
                tags[name] = bool(fields.pop(name))

        return tags
