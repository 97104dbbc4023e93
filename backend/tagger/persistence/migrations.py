"""
Stored session migrations.

Blobs written by earlier releases are brought forward one version at a
time. Each step takes the dict produced by the previous one and returns
the next version. Steps only add or rename keys; unknown record fields
are kept.

Version history:
- 0: unversioned. Video fields named youtubeId / youtubeStartSeconds.
     Some records carry the session match URL under "match" instead of
     a per-record "match_id".
- 1: video fields renamed, per-record match_id populated.
- 2: records carry "kind" and a dense "sequence_number"; the blob
     carries nextSequenceNumber.
"""

import logging
import math
from typing import Any, Callable, Dict, List

from ..ledger.variants import VariantSchema
from ..parsers.match_url import DEFAULT_MATCH_HOST, parse_match_id
from .errors import MigrationError

logger = logging.getLogger(__name__)


SCHEMA_VERSION = 2

Blob = Dict[str, Any]
MigrationStep = Callable[[Blob, VariantSchema, str], Blob]


def coerce_int(value: Any, fallback: int) -> int:
    """
    Lenient numeric read for stored fields.

    Non-numeric, NaN, infinite and zero values give the fallback.
    Fractions are truncated.
    """
    if isinstance(value, bool):
        value = int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if math.isnan(number) or math.isinf(number) or number == 0:
        return fallback
    return int(number)


def detect_version(blob: Blob) -> int:
    """Schema version of a blob; unversioned and negative versions are 0."""
    return max(0, coerce_int(blob.get("version"), 0))


def records_of(blob: Blob, schema: VariantSchema) -> List[Any]:
    """The variant's records list; anything that is not a list reads as empty."""
    records = blob.get(schema.records_key)
    return records if isinstance(records, list) else []


def _migrate_record_match(record: Dict[str, Any], match_host: str) -> Dict[str, Any]:
    if record.get("match_id") or not record.get("match"):
        return record
    legacy = str(record["match"]).strip()
    migrated = dict(record)
    migrated["match_id"] = parse_match_id(legacy, match_host) or legacy
    return migrated


def _v0_to_v1(blob: Blob, schema: VariantSchema, match_host: str) -> Blob:
    out = dict(blob)

    if "videoId" not in out and "youtubeId" in out:
        out["videoId"] = out.pop("youtubeId")
    if "videoStartOffsetSeconds" not in out and "youtubeStartSeconds" in out:
        out["videoStartOffsetSeconds"] = out.pop("youtubeStartSeconds")

    out[schema.records_key] = [
        _migrate_record_match(r, match_host) if isinstance(r, dict) else r
        for r in records_of(blob, schema)
    ]
    out["version"] = 1
    return out


def _has_dense_numbers(records: List[Any]) -> bool:
    numbers = [r.get("sequence_number") if isinstance(r, dict) else None for r in records]
    return numbers == list(range(1, len(records) + 1))


def _v1_to_v2(blob: Blob, schema: VariantSchema, match_host: str) -> Blob:
    out = dict(blob)
    records = []
    for r in records_of(blob, schema):
        if isinstance(r, dict) and "kind" not in r:
            r = {**r, "kind": schema.kind.value}
        records.append(r)

    if not _has_dense_numbers(records):
        records = [
            {**r, "sequence_number": i} if isinstance(r, dict) else r
            for i, r in enumerate(records, start=1)
        ]

    out[schema.records_key] = records
    if "nextSequenceNumber" not in out:
        out["nextSequenceNumber"] = len(records) + 1
    out["version"] = 2
    return out


MIGRATIONS: Dict[int, MigrationStep] = {
    0: _v0_to_v1,
    1: _v1_to_v2,
}


def migrate(
    blob: Blob,
    schema: VariantSchema,
    match_host: str = DEFAULT_MATCH_HOST,
) -> Blob:
    """
    Bring a stored blob to SCHEMA_VERSION.

    Args:
        blob: Decoded JSON document
        schema: Variant whose records list is read
        match_host: Host used to read legacy match URLs

    Returns:
        New dict at the current version (input is not mutated)

    Raises:
        MigrationError: If the blob is newer than this release or no step
                        exists for its version
    """
    version = detect_version(blob)
    if version > SCHEMA_VERSION:
        raise MigrationError(
            f"Stored session version {version} is newer than supported {SCHEMA_VERSION}"
        )

    out = blob
    while version < SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise MigrationError(f"No migration from stored session version {version}")
        out = step(out, schema, match_host)
        logger.debug(f"Migrated stored session v{version} -> v{out['version']}")
        version = out["version"]
    return out


def lenient_record(raw: Any, position: int) -> Any:
    """
    Read the numeric fields of one stored record leniently.

    video_time and score fall back to 0, a sequence_number below 1 falls
    back to the record's 1-based position. Non-dict values are returned
    unchanged and fail validation later.
    """
    if not isinstance(raw, dict):
        return raw
    out = dict(raw)
    if "video_time" in out:
        out["video_time"] = max(0, coerce_int(out["video_time"], 0))
    if "score" in out:
        out["score"] = coerce_int(out["score"], 0)
    number = coerce_int(out.get("sequence_number"), position)
    out["sequence_number"] = number if number >= 1 else position
    return out
