"""
Session intents.

An intent is one thing the operator did in the UI. The UI builds an
intent and hands it to SessionController.dispatch(); it never touches
session state directly.

Every intent carries a "type" discriminator so intents can also arrive
as JSON (see parse_intent).
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Intent(BaseModel):
    """Base model for all intents."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class SetMatchUrl(Intent):
    type: Literal["set_match_url"] = "set_match_url"
    url: str = ""


class SetPlayer(Intent):
    type: Literal["set_player"] = "set_player"
    player: str = ""


class SetMode(Intent):
    type: Literal["set_mode"] = "set_mode"
    mode: str = ""


class SetVideoUrl(Intent):
    """
    Video URL typed or submitted.

    submit is False while the operator is typing; parse errors are only
    reported for an explicit submit.
    """

    type: Literal["set_video_url"] = "set_video_url"
    url: str = ""
    submit: bool = False


class SetCrop(Intent):
    type: Literal["set_crop"] = "set_crop"
    crop: str = "none"


class ToggleZoom(Intent):
    """Flip between bottom-left crop and no crop."""

    type: Literal["toggle_zoom"] = "toggle_zoom"


class LogTag(Intent):
    """
    Tag pressed while the video plays (event variant).

    at is the player position read by the UI at press time. When absent
    the controller reads its own clock.
    """

    type: Literal["log_tag"] = "log_tag"
    tag: str
    at: Optional[float] = None


class AppendRecord(Intent):
    type: Literal["append_record"] = "append_record"
    fields: Dict[str, Any] = Field(default_factory=dict)


class UpdateRecord(Intent):
    type: Literal["update_record"] = "update_record"
    index: int
    fields: Dict[str, Any] = Field(default_factory=dict)


class DeleteRecord(Intent):
    type: Literal["delete_record"] = "delete_record"
    index: int


class BeginEdit(Intent):
    type: Literal["begin_edit"] = "begin_edit"
    index: int


class CancelEdit(Intent):
    type: Literal["cancel_edit"] = "cancel_edit"


class SubmitRecord(Intent):
    """Record form submitted: updates the record being edited, else appends."""

    type: Literal["submit_record"] = "submit_record"
    fields: Dict[str, Any] = Field(default_factory=dict)


class LoadRoster(Intent):
    """
    Roster text or file offered to the player field.

    auto marks the startup load of the default roster file, which
    reports failures differently from a file the operator picked.
    """

    type: Literal["load_roster"] = "load_roster"
    text: Optional[str] = None
    path: Optional[str] = None
    source_name: str = "players.csv"
    auto: bool = False


class ExportCsv(Intent):
    type: Literal["export_csv"] = "export_csv"


class Reset(Intent):
    type: Literal["reset"] = "reset"


AnyIntent = Annotated[
    Union[
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
    ],
    Field(discriminator="type"),
]

_intent_adapter: TypeAdapter = TypeAdapter(AnyIntent)


def parse_intent(data: Dict[str, Any]) -> Intent:
    """
    Build an intent from a JSON-style dict.

    Raises:
        pydantic.ValidationError: If the type is unknown or fields are invalid
    """
    return _intent_adapter.validate_python(data)
