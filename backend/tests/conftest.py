"""
Pytest configuration for the tagger test suite.

Shared fixtures: in-memory storage, a fake video clock and a controller
factory with scripted confirmation answers.
"""

import sys
from pathlib import Path

import pytest

# Add backend to Python path for test imports
backend_path = Path(__file__).parent.parent
if str(backend_path) not in sys.path:
    sys.path.insert(0, str(backend_path))

from tagger.controller import SessionController  # noqa: E402
from tagger.persistence.storage import MemoryStorage  # noqa: E402
from tagger.persistence.store import SessionStore  # noqa: E402


MATCH_URL = "https://www.breakingpoint.gg/match/abc123/optic-vs-faze"


class FakeClock:
    """Video clock stand-in. An Exception value is raised on read."""

    def __init__(self, value=None):
        self.value = value

    def current_time(self):
        if isinstance(self.value, Exception):
            raise self.value
        return self.value


class ScriptedConfirm:
    """Answers prompts from a script and remembers what was asked."""

    def __init__(self, *answers: bool, default: bool = False):
        self.answers = list(answers)
        self.default = default
        self.prompts = []

    def __call__(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        if self.answers:
            return self.answers.pop(0)
        return self.default


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def clock():
    return FakeClock(0.0)


@pytest.fixture
def make_controller(storage):
    """Factory: controller over the shared memory storage."""

    def _make(variant="event", clock=None, confirm=None, store_storage=None):
        store = SessionStore(store_storage or storage, variant)
        return SessionController(store, clock=clock, confirm=confirm)

    return _make


@pytest.fixture
def labelled(make_controller):
    """Factory: controller with match, player and mode already set."""
    from tagger.session.intents import SetMatchUrl, SetMode, SetPlayer

    def _make(variant="event", **kwargs):
        controller = make_controller(variant, **kwargs)
        controller.dispatch(SetMatchUrl(url=MATCH_URL))
        controller.dispatch(SetPlayer(player="Shotzzy"))
        controller.dispatch(SetMode(mode="Hardpoint"))
        return controller

    return _make
