"""
Session endpoints for the browser UI.

HTTP adapter over SessionController. Each endpoint builds one intent,
dispatches it and returns the new snapshot with any notices.

No domain logic lives here. Destructive actions need ?confirmed=true;
the page asks the operator before sending it.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..controller import DispatchResult, SessionController
from ..ledger.errors import LedgerError, RecordNotFoundError, UnknownTagError
from ..session import intents as i
from ..session.display import format_time

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])


# ============================================================================
# REQUEST MODELS
# ============================================================================

class UrlRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = ""


class VideoUrlRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = ""
    submit: bool = False


class PlayerRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    player: str = ""


class ModeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: str = ""


class CropRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    crop: str = "none"


class RecordFieldsRequest(BaseModel):
    """Record fields as the form sends them."""

    model_config = ConfigDict(extra="forbid")

    fields: Dict[str, Any] = Field(default_factory=dict)


class RosterRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    source_name: str = "players.csv"


# ============================================================================
# HELPERS
# ============================================================================

def _controller(request: Request) -> SessionController:
    return request.app.state.controller


class _Prompt:
    """Confirmation stand-in: answers with the request flag, remembers the prompt."""

    def __init__(self, confirmed: bool):
        self.confirmed = confirmed
        self.prompt: Optional[str] = None

    def __call__(self, prompt: str) -> bool:
        self.prompt = prompt
        return self.confirmed


def session_payload(controller: SessionController, result: Optional[DispatchResult] = None) -> Dict[str, Any]:
    """Snapshot plus derived display fields, as JSON-ready dict."""
    session = result.session if result else controller.snapshot()
    payload: Dict[str, Any] = session.model_dump(mode="json")
    payload["variant"] = controller.schema.variant.value
    payload["tags"] = {
        "good": list(controller.schema.good_tags),
        "bad": list(controller.schema.bad_tags),
    }
    payload["video_url"] = session.video_url
    payload["embed_url"] = controller.player_embed_url()
    payload["display_order"] = [idx for idx, _ in session.records_by_recency()]
    payload["video_start"] = format_time(session.video_start_offset_seconds)
    payload["roster"] = controller.roster
    if result is not None:
        payload["changed"] = result.changed
        payload["notices"] = [
            {"level": n.level.value, "target": n.target, "message": n.message}
            for n in result.notices
        ]
    return payload


def _dispatch(request: Request, intent: i.Intent, confirmed: bool = False) -> DispatchResult:
    controller = _controller(request)
    try:
        return controller.dispatch(intent, confirm=_Prompt(confirmed))
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnknownTagError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LedgerError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _dispatch_destructive(request: Request, intent: i.Intent, confirmed: bool) -> DispatchResult:
    prompt = _Prompt(confirmed)
    controller = _controller(request)
    try:
        result = controller.dispatch(intent, confirm=prompt)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not result.changed and not confirmed:
        raise HTTPException(status_code=409, detail=prompt.prompt or "Confirmation required")
    return result


# ============================================================================
# SESSION
# ============================================================================

@router.get("/session")
async def get_session(request: Request):
    """Current session snapshot."""
    return session_payload(_controller(request))


@router.post("/session/match-url")
async def set_match_url(body: UrlRequest, request: Request):
    result = _dispatch(request, i.SetMatchUrl(url=body.url))
    return session_payload(_controller(request), result)


@router.post("/session/player")
async def set_player(body: PlayerRequest, request: Request):
    result = _dispatch(request, i.SetPlayer(player=body.player))
    return session_payload(_controller(request), result)


@router.post("/session/mode")
async def set_mode(body: ModeRequest, request: Request):
    result = _dispatch(request, i.SetMode(mode=body.mode))
    return session_payload(_controller(request), result)


@router.post("/session/video")
async def set_video(body: VideoUrlRequest, request: Request):
    result = _dispatch(request, i.SetVideoUrl(url=body.url, submit=body.submit))
    return session_payload(_controller(request), result)


@router.post("/session/crop")
async def set_crop(body: CropRequest, request: Request):
    result = _dispatch(request, i.SetCrop(crop=body.crop))
    return session_payload(_controller(request), result)


@router.post("/session/zoom/toggle")
async def toggle_zoom(request: Request):
    result = _dispatch(request, i.ToggleZoom())
    return session_payload(_controller(request), result)


@router.post("/session/reset")
async def reset_session(request: Request, confirmed: bool = Query(False)):
    """Clear storage and restore defaults. Requires ?confirmed=true."""
    result = _dispatch_destructive(request, i.Reset(), confirmed)
    logger.info("Session reset via API")
    return session_payload(_controller(request), result)


@router.post("/intents")
async def dispatch_intent(
    request: Request,
    body: Dict[str, Any] = Body(...),
    confirmed: bool = Query(False),
):
    """Generic intent endpoint: body is an intent with its "type"."""
    try:
        intent = i.parse_intent(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid intent: {e.error_count()} errors")
    if isinstance(intent, i.ExportCsv):
        raise HTTPException(status_code=400, detail="Use GET /export.csv to export")
    result = _dispatch(request, intent, confirmed)
    return session_payload(_controller(request), result)


# ============================================================================
# RECORDS
# ============================================================================

@router.post("/records")
async def append_record(body: RecordFieldsRequest, request: Request, confirmed: bool = Query(False)):
    result = _dispatch(request, i.AppendRecord(fields=body.fields), confirmed)
    return session_payload(_controller(request), result)


@router.post("/records/submit")
async def submit_record(body: RecordFieldsRequest, request: Request, confirmed: bool = Query(False)):
    result = _dispatch(request, i.SubmitRecord(fields=body.fields), confirmed)
    return session_payload(_controller(request), result)


@router.post("/records/tags/{tag}")
async def log_tag(tag: str, request: Request, at: Optional[float] = Query(None)):
    """Record a tag press. ?at= is the player position read by the page."""
    result = _dispatch(request, i.LogTag(tag=tag, at=at))
    return session_payload(_controller(request), result)


@router.delete("/records/edit")
async def cancel_edit(request: Request):
    result = _dispatch(request, i.CancelEdit())
    return session_payload(_controller(request), result)


@router.put("/records/{index}")
async def update_record(index: int, body: RecordFieldsRequest, request: Request):
    result = _dispatch(request, i.UpdateRecord(index=index, fields=body.fields))
    return session_payload(_controller(request), result)


@router.post("/records/{index}/edit")
async def begin_edit(index: int, request: Request):
    result = _dispatch(request, i.BeginEdit(index=index))
    return session_payload(_controller(request), result)


@router.delete("/records/{index}")
async def delete_record(index: int, request: Request, confirmed: bool = Query(False)):
    """Delete and renumber. Requires ?confirmed=true."""
    result = _dispatch_destructive(request, i.DeleteRecord(index=index), confirmed)
    return session_payload(_controller(request), result)


# ============================================================================
# ROSTER / EXPORT
# ============================================================================

@router.post("/roster")
async def load_roster(body: RosterRequest, request: Request):
    result = _dispatch(request, i.LoadRoster(text=body.text, source_name=body.source_name))
    return session_payload(_controller(request), result)


@router.get("/roster")
async def get_roster(request: Request) -> List[str]:
    return _controller(request).roster


@router.get("/export.csv")
async def export_csv(request: Request):
    """CSV download of the ledger. 400 when there is nothing to export."""
    result = _dispatch(request, i.ExportCsv())
    if result.export is None:
        detail = result.notices[0].message if result.notices else "Nothing to export"
        raise HTTPException(status_code=400, detail=detail)
    return Response(
        content=result.export.text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{result.export.file_name}"'},
    )
