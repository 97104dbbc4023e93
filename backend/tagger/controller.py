"""
Session controller.

Owns the one session of this process and is the only writer of
persisted state. The UI sends intents and renders the snapshots that
come back; it never reads or writes the ledger itself.

For every intent that changes state the order is fixed:

    mutate state -> persist -> notify render listeners

so a render always shows what was just persisted, and a crash between
persist and render leaves storage ahead of the UI, never behind it.

Error policy:
- Malformed input (bad URL, unreadable roster) -> notice, state unchanged
- Storage failure -> logged, ignored; in-memory state stays authoritative
- Missing session labels, empty export -> confirmation or alert notice
- Delete and reset -> explicit confirmation; declined means no-op
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol

from .export.csv_export import CsvExport, CsvExporter
from .export.errors import EmptyExportError
from .ledger.errors import UnknownTagError
from .ledger.ledger import Ledger
from .ledger.variants import RecordKind, VariantSchema
from .parsers.match_url import DEFAULT_MATCH_HOST, match_url_hint, parse_match_id
from .parsers.video_url import embed_url, parse_video_ref
from .persistence.storage import StorageResult
from .persistence.store import LoadOutcome, SessionStore
from .roster import load_roster_file, parse_roster
from .session import intents as i
from .session.display import delete_prompt
from .session.models import CropPreference, Session, SessionHeader

logger = logging.getLogger(__name__)


ConfirmFn = Callable[[str], bool]
RenderListener = Callable[[Session], None]

INVALID_VIDEO_URL = "Invalid YouTube URL"
ROSTER_AUTOLOAD_FAILED = 'Could not auto-load players.csv. Use "Load Players CSV" to choose a file.'
ROSTER_READ_FAILED = "Failed to read CSV file."


class VideoClock(Protocol):
    """Readout of the video widget's playback position."""

    def current_time(self) -> Optional[float]: ...


class NoticeLevel(str, Enum):
    INFO = "info"
    ERROR = "error"
    ALERT = "alert"


@dataclass(frozen=True)
class Notice:
    """Inline, non-blocking message for the UI."""

    level: NoticeLevel
    target: str
    message: str


@dataclass
class DispatchResult:
    """What an intent produced: the new snapshot plus side outputs."""

    session: Session
    changed: bool = False
    notices: List[Notice] = field(default_factory=list)
    export: Optional[CsvExport] = None
    roster: Optional[List[str]] = None

    def notices_for(self, target: str) -> List[Notice]:
        return [n for n in self.notices if n.target == target]


@dataclass
class _Outcome:
    changed: bool = False
    persist: bool = True
    notices: List[Notice] = field(default_factory=list)
    export: Optional[CsvExport] = None
    roster: Optional[List[str]] = None


def _deny(prompt: str) -> bool:
    return False


class SessionController:
    """
    Single owner of the tagging session.

    Construct once per process. The stored session is restored at
    construction; storage problems fall back to the empty session.
    """

    def __init__(
        self,
        store: SessionStore,
        clock: Optional[VideoClock] = None,
        confirm: Optional[ConfirmFn] = None,
        match_host: str = DEFAULT_MATCH_HOST,
    ):
        """
        Initialize controller and restore the stored session.

        Args:
            store: Persistence adapter (also fixes the variant)
            clock: Video position readout; None means no player yet
            confirm: Default confirmation prompt. Without one, every
                     prompt is declined.
            match_host: Host accepted in match URLs
        """
        self._store = store
        self._schema: VariantSchema = store.schema
        self._clock = clock
        self._confirm = confirm or _deny
        self._match_host = match_host
        self._exporter = CsvExporter(self._schema)
        self._listeners: List[RenderListener] = []
        self._roster: List[str] = []
        self._editing_index: Optional[int] = None

        self.last_load: LoadOutcome = store.read()
        self.last_save: Optional[StorageResult] = None

        if self.last_load.error:
            logger.warning(
                f"Stored session not restored ({self.last_load.status.value}): {self.last_load.error}"
            )
        restored = self.last_load.session
        self._header: SessionHeader = restored.header()
        self._ledger = Ledger(self._schema, restored.records, restored.next_sequence_number)
        logger.info(
            f"Session ready: variant={self._schema.variant.value}, "
            f"{self._ledger.count()} {self._schema.noun}, load={self.last_load.status.value}"
        )

        self._handlers: Dict[type, Callable[..., _Outcome]] = {
            i.SetMatchUrl: self._set_match_url,
            i.SetPlayer: self._set_player,
            i.SetMode: self._set_mode,
            i.SetVideoUrl: self._set_video_url,
            i.SetCrop: self._set_crop,
            i.ToggleZoom: self._toggle_zoom,
            i.LogTag: self._log_tag,
            i.AppendRecord: self._append_record,
            i.UpdateRecord: self._update_record,
            i.DeleteRecord: self._delete_record,
            i.BeginEdit: self._begin_edit,
            i.CancelEdit: self._cancel_edit,
            i.SubmitRecord: self._submit_record,
            i.LoadRoster: self._load_roster,
            i.ExportCsv: self._export_csv,
            i.Reset: self._reset,
        }

    # Read side

    @property
    def schema(self) -> VariantSchema:
        return self._schema

    @property
    def roster(self) -> List[str]:
        return list(self._roster)

    def snapshot(self) -> Session:
        """Deep copy of the current session for rendering."""
        return Session(
            **self._header.model_dump(),
            records=list(self._ledger.records()),
            next_sequence_number=self._ledger.next_sequence_number,
            editing_index=self._editing_index,
        )

    def subscribe(self, listener: RenderListener) -> None:
        """Register a render listener, called after every persisted change."""
        self._listeners.append(listener)

    def set_clock(self, clock: Optional[VideoClock]) -> None:
        """Attach the video player once it reports ready."""
        self._clock = clock

    def current_video_time(self, reading: Optional[float] = None) -> float:
        """
        Current playback position in seconds.

        Args:
            reading: Position already read by the UI; takes precedence
                     over the attached clock

        Falls back to the video start offset when there is no reading,
        no player, or the readout is unusable.
        """
        fallback = float(self._header.video_start_offset_seconds or 0)
        if reading is not None:
            t = reading
        elif self._clock is None:
            return fallback
        else:
            try:
                t = self._clock.current_time()
            except Exception as e:
                logger.debug(f"Video clock readout failed: {e}")
                return fallback
        if t is None:
            return fallback
        try:
            t = float(t)
        except (TypeError, ValueError):
            return fallback
        if not math.isfinite(t) or t < 0:
            return fallback
        return t

    def player_embed_url(self, origin: Optional[str] = None) -> str:
        """Iframe URL for the current video, or "" without one."""
        if not self._header.video_id:
            return ""
        return embed_url(self._header.video_id, self._header.video_start_offset_seconds, origin)

    # Dispatch

    def dispatch(self, intent: i.Intent, confirm: Optional[ConfirmFn] = None) -> DispatchResult:
        """
        Apply one intent.

        Args:
            intent: The operator action
            confirm: Confirmation prompt for this call only (overrides
                     the controller default)

        Returns:
            DispatchResult with the post-intent snapshot

        Raises:
            LedgerError: If the intent points at a missing record or
                         carries invalid record fields
        """
        handler = self._handlers.get(type(intent))
        if handler is None:
            raise TypeError(f"Unsupported intent: {type(intent).__name__}")

        outcome = handler(intent, confirm or self._confirm)

        snapshot = self.snapshot()
        if outcome.changed:
            if outcome.persist:
                self._persist(snapshot)
            self._render(snapshot)

        return DispatchResult(
            session=snapshot,
            changed=outcome.changed,
            notices=outcome.notices,
            export=outcome.export,
            roster=outcome.roster,
        )

    def _persist(self, snapshot: Session) -> None:
        result = self._store.save(snapshot)
        self.last_save = result
        if not result.ok:
            logger.warning(f"Session not saved, continuing in memory: {result.error}")

    def _render(self, snapshot: Session) -> None:
        for listener in self._listeners:
            listener(snapshot)

    def _labels(self) -> Dict[str, str]:
        return {
            "match_id": self._header.match_id or "",
            "player": self._header.player or "",
            "mode": self._header.mode or "",
        }

    # Session fields

    def _set_match_url(self, intent: i.SetMatchUrl, confirm: ConfirmFn) -> _Outcome:
        url = intent.url.strip()
        notices = []
        match_id = None
        if url:
            match_id = parse_match_id(url, self._match_host)
            if match_id is None:
                notices.append(Notice(NoticeLevel.ERROR, "match_url", match_url_hint(self._match_host)))
        self._header = self._header.model_copy(update={"match_url": url, "match_id": match_id})
        return _Outcome(changed=True, notices=notices)

    def _set_player(self, intent: i.SetPlayer, confirm: ConfirmFn) -> _Outcome:
        self._header = self._header.model_copy(update={"player": intent.player})
        return _Outcome(changed=True)

    def _set_mode(self, intent: i.SetMode, confirm: ConfirmFn) -> _Outcome:
        self._header = self._header.model_copy(update={"mode": intent.mode})
        return _Outcome(changed=True)

    def _set_video_url(self, intent: i.SetVideoUrl, confirm: ConfirmFn) -> _Outcome:
        url = intent.url.strip()
        if not url:
            self._header = self._header.model_copy(
                update={"video_id": None, "video_start_offset_seconds": 0}
            )
            return _Outcome(changed=True)

        ref = parse_video_ref(url)
        if ref is None:
            notices = []
            if intent.submit:
                notices.append(Notice(NoticeLevel.ERROR, "video_url", INVALID_VIDEO_URL))
            return _Outcome(notices=notices)

        self._header = self._header.model_copy(
            update={"video_id": ref.video_id, "video_start_offset_seconds": ref.start_seconds}
        )
        return _Outcome(changed=True)

    def _set_crop(self, intent: i.SetCrop, confirm: ConfirmFn) -> _Outcome:
        self._header = self._header.model_copy(update={"crop": CropPreference.coerce(intent.crop)})
        return _Outcome(changed=True)

    def _toggle_zoom(self, intent: i.ToggleZoom, confirm: ConfirmFn) -> _Outcome:
        if self._header.crop == CropPreference.BOTTOM_LEFT:
            crop = CropPreference.NONE
        else:
            crop = CropPreference.BOTTOM_LEFT
        self._header = self._header.model_copy(update={"crop": crop})
        return _Outcome(changed=True)

    # Records

    def _log_tag(self, intent: i.LogTag, confirm: ConfirmFn) -> _Outcome:
        if not self._schema.has_tag(intent.tag):
            raise UnknownTagError(intent.tag, self._schema.variant.value)
        if self._schema.kind != RecordKind.EVENT:
            return _Outcome(notices=[Notice(
                NoticeLevel.ERROR,
                "record",
                f"Tags are set on the record form for {self._schema.noun}",
            )])

        video_time = int(math.floor(self.current_video_time(intent.at)))
        self._ledger.append({
            **self._labels(),
            "event": intent.tag,
            "value": 1,
            "video_time": video_time,
        })
        return _Outcome(changed=True)

    def _confirm_missing_labels(self, confirm: ConfirmFn) -> Optional[Notice]:
        missing = self._header.missing_labels
        if not missing:
            return None
        prompt = f"Missing {', '.join(missing)}. Save anyway?"
        if confirm(prompt):
            return None
        return Notice(NoticeLevel.ALERT, "record", f"Not saved: missing {', '.join(missing)}.")

    def _append_record(self, intent: i.AppendRecord, confirm: ConfirmFn) -> _Outcome:
        blocked = self._confirm_missing_labels(confirm)
        if blocked:
            return _Outcome(notices=[blocked])
        self._ledger.append({**self._labels(), **intent.fields})
        return _Outcome(changed=True)

    def _update_record(self, intent: i.UpdateRecord, confirm: ConfirmFn) -> _Outcome:
        self._ledger.update(intent.index, intent.fields)
        if self._editing_index == intent.index:
            self._editing_index = None
        return _Outcome(changed=True)

    def _delete_record(self, intent: i.DeleteRecord, confirm: ConfirmFn) -> _Outcome:
        record = self._ledger.get(intent.index)
        if not confirm(delete_prompt(record)):
            logger.debug(f"Delete of record #{record.sequence_number} declined")
            return _Outcome()

        self._ledger.remove(intent.index)
        if self._editing_index is not None:
            if self._editing_index == intent.index:
                self._editing_index = None
            elif self._editing_index > intent.index:
                self._editing_index -= 1
        return _Outcome(changed=True)

    def _begin_edit(self, intent: i.BeginEdit, confirm: ConfirmFn) -> _Outcome:
        self._ledger.get(intent.index)
        self._editing_index = intent.index
        return _Outcome(changed=True)

    def _cancel_edit(self, intent: i.CancelEdit, confirm: ConfirmFn) -> _Outcome:
        if self._editing_index is None:
            return _Outcome()
        self._editing_index = None
        return _Outcome(changed=True)

    def _submit_record(self, intent: i.SubmitRecord, confirm: ConfirmFn) -> _Outcome:
        if self._editing_index is None:
            return self._append_record(i.AppendRecord(fields=intent.fields), confirm)
        return self._update_record(
            i.UpdateRecord(index=self._editing_index, fields=intent.fields), confirm
        )

    # Side outputs

    def _load_roster(self, intent: i.LoadRoster, confirm: ConfirmFn) -> _Outcome:
        if intent.text is not None:
            names = parse_roster(intent.text)
        else:
            try:
                names = load_roster_file(intent.path or intent.source_name)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Roster not loaded from {intent.path or intent.source_name}: {e}")
                message = ROSTER_AUTOLOAD_FAILED if intent.auto else ROSTER_READ_FAILED
                return _Outcome(notices=[Notice(NoticeLevel.INFO, "roster", message)])

        self._roster = names
        message = f"Loaded {len(names)} players from {intent.source_name}"
        return _Outcome(notices=[Notice(NoticeLevel.INFO, "roster", message)], roster=list(names))

    def _export_csv(self, intent: i.ExportCsv, confirm: ConfirmFn) -> _Outcome:
        try:
            export = self._exporter.export(self._ledger.records(), self._header)
        except EmptyExportError as e:
            return _Outcome(notices=[Notice(NoticeLevel.ALERT, "export", str(e))])
        return _Outcome(export=export)

    def _reset(self, intent: i.Reset, confirm: ConfirmFn) -> _Outcome:
        prompt = f"This will clear all {self._schema.noun} and session settings. Continue?"
        if not confirm(prompt):
            return _Outcome()

        result = self._store.clear()
        if not result.ok:
            logger.warning(f"Stored session not cleared: {result.error}")

        self._header = SessionHeader()
        self._ledger.clear()
        self._editing_index = None
        logger.info("Session reset")
        # Storage was just cleared; writing the empty session back is not needed
        return _Outcome(changed=True, persist=False)
