"""
Tests for the record ledger.

Covers the numbering invariant (dense 1..N, counter = N + 1), the
append/update/remove contract for both record kinds, and the repair
of stored records on construction.
"""

import random

import pytest

from tagger.ledger import (
    EventRecord,
    Ledger,
    LifeRecord,
    RecordNotFoundError,
    RecordValidationError,
    UnknownTagError,
)
from tagger.ledger.variants import BASIC_BAD_TAGS, BASIC_GOOD_TAGS, GOOD_TAGS, get_variant


def _event(name="flank", t=0, **extra):
    return {"event": name, "video_time": t, "match_id": "m1", "player": "p", "mode": "hp", **extra}


def _numbers(ledger):
    return [r.sequence_number for r in ledger.records()]


# =============================================================================
# Numbering invariant
# =============================================================================

class TestSequenceNumbers:
    """Sequence numbers stay dense and the counter stays count + 1."""

    def test_empty_ledger(self):
        ledger = Ledger("event")
        assert ledger.count() == 0
        assert ledger.next_sequence_number == 1

    def test_append_assigns_next_number(self):
        ledger = Ledger("event")
        first = ledger.append(_event())
        second = ledger.append(_event("free_kill"))
        assert (first.sequence_number, second.sequence_number) == (1, 2)
        assert ledger.next_sequence_number == 3

    def test_append_ignores_caller_identity_fields(self):
        ledger = Ledger("event")
        record = ledger.append(_event(sequence_number=99, kind="life"))
        assert record.sequence_number == 1
        assert isinstance(record, EventRecord)

    def test_remove_renumbers_survivors_in_order(self):
        """Deleting #2 of 4 gives 1, 2, 3 with the original relative order."""
        ledger = Ledger("event")
        for t in (10, 20, 30, 40):
            ledger.append(_event(t=t))

        removed = ledger.remove(1)

        assert removed.video_time == 20
        assert removed.sequence_number == 2
        assert _numbers(ledger) == [1, 2, 3]
        assert [r.video_time for r in ledger.records()] == [10, 30, 40]
        assert ledger.next_sequence_number == 4

    def test_counter_after_mixed_appends_and_removes(self):
        ledger = Ledger("event")
        for _ in range(5):
            ledger.append(_event())
        ledger.remove(0)
        ledger.remove(2)
        ledger.append(_event())
        assert _numbers(ledger) == [1, 2, 3, 4]
        assert ledger.next_sequence_number == ledger.count() + 1

    def test_remove_last_record(self):
        ledger = Ledger("event")
        ledger.append(_event())
        ledger.remove(0)
        assert ledger.count() == 0
        assert ledger.next_sequence_number == 1

    def test_clear_resets_counter(self):
        ledger = Ledger("event")
        ledger.append(_event())
        ledger.append(_event())
        ledger.clear()
        assert ledger.count() == 0
        assert ledger.next_sequence_number == 1


class TestRandomInterleavings:
    """Any mix of appends and removes keeps numbering dense and ordered."""

    @pytest.mark.parametrize("seed", range(25))
    def test_invariant_after_every_step(self, seed):
        rng = random.Random(seed)
        ledger = Ledger("event")
        expected = []
        marker = 0

        for _ in range(60):
            if expected and rng.random() < 0.4:
                index = rng.randrange(len(expected))
                removed = ledger.remove(index)
                assert removed.video_time == expected.pop(index)
            else:
                marker += 1
                ledger.append(_event(t=marker))
                expected.append(marker)

            assert _numbers(ledger) == list(range(1, len(expected) + 1))
            assert [r.video_time for r in ledger.records()] == expected
            assert ledger.next_sequence_number == ledger.count() + 1


class TestConstruction:
    """Stored records are loaded and repaired."""

    def test_stale_counter_repaired(self):
        records = [_event(sequence_number=1), _event(sequence_number=2)]
        ledger = Ledger("event", records, next_sequence_number=1)
        assert ledger.next_sequence_number == 3

    def test_oversized_counter_repaired(self):
        records = [_event(sequence_number=1)]
        ledger = Ledger("event", records, next_sequence_number=50)
        assert ledger.next_sequence_number == 2

    def test_gaps_renumbered_in_stored_order(self):
        records = [_event(t=1, sequence_number=3), _event(t=2, sequence_number=7)]
        ledger = Ledger("event", records)
        assert _numbers(ledger) == [1, 2]
        assert [r.video_time for r in ledger.records()] == [1, 2]

    def test_kind_defaults_to_variant(self):
        ledger = Ledger("life", [{"sequence_number": 1, "score": 3, "tags": {}}])
        assert isinstance(ledger.get(0), LifeRecord)

    def test_invalid_stored_record(self):
        with pytest.raises(RecordValidationError):
            Ledger("event", [{"sequence_number": 1, "kind": "event"}])

    def test_foreign_kind_rejected(self):
        life = {"sequence_number": 1, "kind": "life", "score": 2, "tags": {}}
        with pytest.raises(RecordValidationError, match="life record"):
            Ledger("event", [life])

    def test_foreign_kind_model_rejected(self):
        event = EventRecord(sequence_number=1, event="flank")
        with pytest.raises(RecordValidationError):
            Ledger("life_basic", [event])

    def test_unknown_variant(self):
        with pytest.raises(ValueError, match="Unknown variant"):
            Ledger("bogus")


# =============================================================================
# Queries
# =============================================================================

class TestQueries:
    def test_get_returns_copy(self):
        ledger = Ledger("event")
        ledger.append(_event())
        copy = ledger.get(0)
        copy.video_time = 999
        assert ledger.get(0).video_time == 0

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_get_out_of_range(self, index):
        ledger = Ledger("event")
        ledger.append(_event())
        with pytest.raises(RecordNotFoundError) as exc:
            ledger.get(index)
        assert exc.value.index == index
        assert exc.value.count == 1

    def test_sort_orders(self):
        ledger = Ledger("event")
        for t in (5, 3, 9):
            ledger.append(_event(t=t))
        assert [r.sequence_number for r in ledger.list_sorted_by_recency()] == [3, 2, 1]
        assert [r.sequence_number for r in ledger.list_sorted_for_export()] == [1, 2, 3]


# =============================================================================
# Event records
# =============================================================================

class TestEventRecords:
    def test_unknown_event_rejected(self):
        ledger = Ledger("event")
        with pytest.raises(UnknownTagError) as exc:
            ledger.append(_event("teabag"))
        assert exc.value.tag == "teabag"
        assert ledger.count() == 0

    def test_missing_event_rejected(self):
        ledger = Ledger("event")
        with pytest.raises(RecordValidationError):
            ledger.append({"video_time": 3})

    def test_negative_video_time_rejected(self):
        ledger = Ledger("event")
        with pytest.raises(RecordValidationError):
            ledger.append(_event(t=-1))
        assert ledger.next_sequence_number == 1

    def test_update_preserves_identity_and_position(self):
        ledger = Ledger("event")
        ledger.append(_event(t=1))
        ledger.append(_event(t=2))

        updated = ledger.update(0, {"event": "bad_trade", "video_time": 11, "sequence_number": 9})

        assert updated.sequence_number == 1
        assert updated.event == "bad_trade"
        assert ledger.get(0).video_time == 11
        assert ledger.get(1).video_time == 2

    def test_update_keeps_unspecified_fields(self):
        ledger = Ledger("event")
        ledger.append(_event(t=7))
        updated = ledger.update(0, {"player": "Other"})
        assert updated.video_time == 7
        assert updated.event == "flank"
        assert updated.player == "Other"

    def test_update_keeps_legacy_event_name(self):
        """A stored event no longer in the tag set can still be edited."""
        ledger = Ledger("event", [_event("legacy_tag", sequence_number=1)])
        updated = ledger.update(0, {"video_time": 4})
        assert updated.event == "legacy_tag"

    def test_update_out_of_range(self):
        ledger = Ledger("event")
        with pytest.raises(RecordNotFoundError):
            ledger.update(0, _event())

    def test_unknown_fields_kept(self):
        ledger = Ledger("event")
        record = ledger.append(_event(note="clutch"))
        assert record.model_dump()["note"] == "clutch"

    def test_none_labels_stored_empty(self):
        ledger = Ledger("event")
        record = ledger.append({"event": "flank", "match_id": None, "player": None})
        assert record.match_id == ""
        assert record.player == ""


# =============================================================================
# Life records
# =============================================================================

class TestLifeRecords:
    def test_append_fills_full_tag_set(self):
        ledger = Ledger("life")
        record = ledger.append({"score": 2, "tags": {"flank": True}})
        assert set(record.tags) == set(get_variant("life").tags)
        assert record.tags["flank"] is True
        assert record.tags["good_route"] is False
        assert record.life_num == 1

    def test_top_level_tag_fields(self):
        ledger = Ledger("life")
        record = ledger.append({"score": 1, "free_kill": True})
        assert record.tags["free_kill"] is True
        assert "free_kill" not in record.model_dump(exclude={"tags"})

    def test_basic_variant_tag_set(self):
        ledger = Ledger("life_basic")
        record = ledger.append({"score": 0})
        assert tuple(record.tags) == BASIC_GOOD_TAGS + BASIC_BAD_TAGS

    def test_basic_variant_rejects_full_tags(self):
        ledger = Ledger("life_basic")
        with pytest.raises(UnknownTagError):
            ledger.append({"score": 0, "tags": {"flank": True}})

    def test_update_with_tags_mapping_replaces_tags(self):
        ledger = Ledger("life")
        ledger.append({"score": 1, "tags": {"flank": True, "good_route": True}})
        updated = ledger.update(0, {"tags": {"good_route": True}})
        assert updated.tags["good_route"] is True
        assert updated.tags["flank"] is False
        assert updated.score == 1

    def test_update_single_tag_keeps_others(self):
        ledger = Ledger("life")
        ledger.append({"score": 1, "tags": {"flank": True}})
        updated = ledger.update(0, {"bad_route": True})
        assert updated.tags["flank"] is True
        assert updated.tags["bad_route"] is True

    def test_score_must_be_integer(self):
        ledger = Ledger("life")
        with pytest.raises(RecordValidationError):
            ledger.append({"score": "lots"})

    def test_good_tags_order(self):
        ledger = Ledger("life")
        record = ledger.append({"score": 0})
        assert tuple(record.tags)[: len(GOOD_TAGS)] == GOOD_TAGS
