"""
Match Tagger backend service.

Loopback HTTP adapter for the browser UI. One process serves one
session; every request goes through the same SessionController.

Security:
---------
Binds to localhost (127.0.0.1) by default. There is no authentication;
the service holds one operator's working session and is not meant to be
shared.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import TaggerSettings, load_settings
from .controller import SessionController
from .ledger.variants import get_variant
from .persistence.storage import JsonFileStorage
from .persistence.store import SessionStore
from .routes import session
from .session.intents import LoadRoster

logger = logging.getLogger(__name__)


def build_controller(settings: TaggerSettings) -> SessionController:
    """
    Wire storage, store and controller from settings.

    The default roster file is offered once at startup. A missing file
    only produces a notice.
    """
    storage = JsonFileStorage(settings.storage_dir)
    store = SessionStore(storage, get_variant(settings.variant), match_host=settings.match_host)
    controller = SessionController(store, match_host=settings.match_host)

    result = controller.dispatch(LoadRoster(
        path=str(settings.roster_path),
        source_name=settings.roster_path.name,
        auto=True,
    ))
    for notice in result.notices:
        logger.info(f"Roster: {notice.message}")
    return controller


def create_app(
    controller: Optional[SessionController] = None,
    settings: Optional[TaggerSettings] = None,
) -> FastAPI:
    """
    Create the tagging API application.

    Args:
        controller: Controller to serve. Built from settings if not provided.
        settings: Resolved settings. Loaded from the environment if not provided.

    Returns:
        FastAPI application with the session routes mounted
    """
    settings = settings or load_settings()
    controller = controller or build_controller(settings)

    app = FastAPI(title="Match Tagger", version=__version__)

    # Vite dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.controller = controller
    app.state.settings = settings
    app.include_router(session.router)

    @app.get("/health")
    async def health():
        return {
            "service": "match-tagger",
            "status": "running",
            "variant": controller.schema.variant.value,
        }

    return app


def run_server(settings: Optional[TaggerSettings] = None) -> None:
    """
    Run the tagging API server.

    Args:
        settings: Resolved settings. Host and port are taken from here.
    """
    import uvicorn

    settings = settings or load_settings()
    app = create_app(settings=settings)

    print("Starting Match Tagger")
    print(f"Binding to: {settings.host}:{settings.port}")
    if settings.host not in ("127.0.0.1", "localhost"):
        print("WARNING: not bound to localhost. Anyone who can reach this port can edit the session.")

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
