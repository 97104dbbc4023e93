"""
Session persistence adapter.

Saves and loads the whole session as one versioned JSON document under
the variant's fixed storage key.

Rules:
------
- save() and clear() never raise; they return a StorageResult
- load() never raises; anything unreadable yields the default session
- Older blobs are migrated forward on read (see migrations.py)
- Numeric fields are read leniently, optional fields default
- Records of another variant's kind are dropped like unreadable ones

The in-memory session stays authoritative for the running process.
Storage failures are reported to the caller, who decides to ignore them.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from ..ledger.ledger import Ledger
from ..ledger.models import Record
from ..ledger.variants import RecordVariant, VariantSchema, get_variant
from ..parsers.match_url import DEFAULT_MATCH_HOST, parse_match_id
from ..session.models import CropPreference, Session, default_session
from .errors import CorruptBlobError, MigrationError
from .migrations import SCHEMA_VERSION, coerce_int, lenient_record, migrate, records_of
from .storage import KeyValueStorage, StorageResult

logger = logging.getLogger(__name__)

_record_adapter: TypeAdapter = TypeAdapter(Record)


class LoadStatus(str, Enum):
    """How a load attempt ended."""

    LOADED = "loaded"
    MISSING = "missing"
    CORRUPT = "corrupt"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class LoadOutcome:
    """Session produced by a load attempt plus what happened."""

    session: Session
    status: LoadStatus
    error: Optional[str] = None
    dropped_records: int = 0

    @property
    def ok(self) -> bool:
        return self.status == LoadStatus.LOADED


def session_to_blob(session: Session, schema: VariantSchema) -> Dict[str, Any]:
    """Serialize a session to the current blob shape."""
    return {
        "version": SCHEMA_VERSION,
        "match": session.match_url,
        "matchId": session.match_id,
        "player": session.player,
        "mode": session.mode,
        schema.records_key: [r.model_dump(mode="json") for r in session.records],
        "nextSequenceNumber": session.next_sequence_number,
        "videoId": session.video_id,
        "videoStartOffsetSeconds": session.video_start_offset_seconds,
        "crop": session.crop.value,
    }


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def blob_to_session(
    blob: Dict[str, Any],
    schema: VariantSchema,
    match_host: str = DEFAULT_MATCH_HOST,
) -> Tuple[Session, int]:
    """
    Decode a stored blob into a Session.

    Records that fail validation after migration are dropped and
    counted; the rest of the session still loads.

    Returns:
        (session, dropped_record_count)

    Raises:
        CorruptBlobError: If the blob is not a JSON object
        MigrationError: If the blob cannot be migrated
    """
    if not isinstance(blob, dict):
        raise CorruptBlobError(f"Expected a JSON object, got {type(blob).__name__}")

    current = migrate(blob, schema, match_host)

    records: List[Any] = []
    dropped = 0
    for position, raw in enumerate(records_of(current, schema), start=1):
        try:
            record = _record_adapter.validate_python(lenient_record(raw, position))
        except ValidationError as e:
            dropped += 1
            logger.warning(f"Dropping unreadable stored record: {e.error_count()} errors")
            continue
        if record.kind != schema.kind.value:
            dropped += 1
            logger.warning(f"Dropping stored {record.kind} record from {schema.variant.value} session")
            continue
        records.append(record)

    ledger = Ledger(
        schema,
        records,
        next_sequence_number=coerce_int(current.get("nextSequenceNumber"), len(records) + 1),
    )

    match_url = _text(current.get("match"))
    session = Session(
        match_url=match_url,
        match_id=_text(current.get("matchId")) or parse_match_id(match_url, match_host),
        player=_text(current.get("player")),
        mode=_text(current.get("mode")),
        video_id=_text(current.get("videoId")) or None,
        video_start_offset_seconds=max(0, coerce_int(current.get("videoStartOffsetSeconds"), 0)),
        crop=CropPreference.coerce(current.get("crop")),
        records=list(ledger.records()),
        next_sequence_number=ledger.next_sequence_number,
    )
    return session, dropped


class SessionStore:
    """
    Best-effort persistence for one session.

    Wraps a KeyValueStorage with the versioned blob format.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        variant: Union[str, RecordVariant, VariantSchema] = RecordVariant.EVENT,
        match_host: str = DEFAULT_MATCH_HOST,
    ):
        """
        Initialize the store.

        Args:
            storage: Durable key/value backend
            variant: Variant deciding the storage key and records list
            match_host: Host used when migrating legacy match URLs
        """
        self._storage = storage
        self._schema = get_variant(variant)
        self._match_host = match_host

    @property
    def key(self) -> str:
        return self._schema.storage_key

    @property
    def schema(self) -> VariantSchema:
        return self._schema

    def save(self, session: Session) -> StorageResult:
        """
        Write the session under the fixed key.

        Never raises. A failed write is returned, not surfaced.
        """
        try:
            payload = json.dumps(session_to_blob(session, self._schema))
            return self._storage.set(self.key, payload)
        except Exception as e:
            return StorageResult.failure(f"Failed to save session: {e}")

    def read(self) -> LoadOutcome:
        """
        Read and decode the stored session.

        Never raises. Missing, corrupt and unavailable storage all give
        the default session with the matching status.
        """
        try:
            result = self._storage.get(self.key)
        except Exception as e:
            result = StorageResult.failure(str(e))

        if not result.ok:
            return LoadOutcome(default_session(), LoadStatus.UNAVAILABLE, error=result.error)
        if not result.value:
            return LoadOutcome(default_session(), LoadStatus.MISSING)

        try:
            blob = json.loads(result.value)
            session, dropped = blob_to_session(blob, self._schema, self._match_host)
        except (ValueError, CorruptBlobError, MigrationError, ValidationError) as e:
            return LoadOutcome(default_session(), LoadStatus.CORRUPT, error=str(e))

        return LoadOutcome(session, LoadStatus.LOADED, dropped_records=dropped)

    def load(self) -> Session:
        """Stored session, or the default empty session."""
        return self.read().session

    def clear(self) -> StorageResult:
        """Remove the stored session. Never raises."""
        try:
            return self._storage.remove(self.key)
        except Exception as e:
            return StorageResult.failure(f"Failed to clear session: {e}")
