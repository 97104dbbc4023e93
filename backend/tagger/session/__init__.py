"""
Session state and intents.

- Session / SessionHeader: the working state of one tagging tab
- Intents: typed operator actions consumed by the controller
- Display helpers for prompts and lists

The controller that applies intents lives in tagger.controller.
"""

from .errors import SessionError, ConfirmationDenied
from .models import CropPreference, SessionHeader, Session, default_session
from .display import format_time, record_title, record_meta, delete_prompt
from .intents import (
    Intent,
    SetMatchUrl,
    SetPlayer,
    SetMode,
    SetVideoUrl,
    SetCrop,
    ToggleZoom,
    LogTag,
    AppendRecord,
    UpdateRecord,
    DeleteRecord,
    BeginEdit,
    CancelEdit,
    SubmitRecord,
    LoadRoster,
    ExportCsv,
    Reset,
    parse_intent,
)

__all__ = [
    "SessionError",
    "ConfirmationDenied",
    "CropPreference",
    "SessionHeader",
    "Session",
    "default_session",
    "format_time",
    "record_title",
    "record_meta",
    "delete_prompt",
    "Intent",
    "SetMatchUrl",
    "SetPlayer",
    "SetMode",
    "SetVideoUrl",
    "SetCrop",
    "ToggleZoom",
    "LogTag",
    "AppendRecord",
    "UpdateRecord",
    "DeleteRecord",
    "BeginEdit",
    "CancelEdit",
    "SubmitRecord",
    "LoadRoster",
    "ExportCsv",
    "Reset",
    "parse_intent",
]
