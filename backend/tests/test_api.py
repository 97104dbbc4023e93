"""
Tests for the HTTP adapter.

Drives the FastAPI app through TestClient against a controller over
memory storage. Checks status codes and payload shape; the session
rules themselves are covered in test_controller.py.
"""

import pytest
from fastapi.testclient import TestClient

from tagger.config import TaggerSettings
from tagger.controller import SessionController
from tagger.main import create_app
from tagger.persistence.store import SessionStore

from conftest import MATCH_URL


@pytest.fixture
def settings(tmp_path):
    return TaggerSettings(storage_dir=tmp_path / "store", roster_path=tmp_path / "players.csv")


@pytest.fixture
def controller(storage):
    return SessionController(SessionStore(storage, "event"))


@pytest.fixture
def client(controller, settings):
    return TestClient(create_app(controller=controller, settings=settings))


@pytest.fixture
def labelled_client(client):
    client.post("/session/match-url", json={"url": MATCH_URL})
    client.post("/session/player", json={"player": "Shotzzy"})
    client.post("/session/mode", json={"mode": "Hardpoint"})
    return client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["variant"] == "event"


class TestSessionEndpoints:
    def test_get_session(self, client):
        body = client.get("/session").json()
        assert body["records"] == []
        assert body["variant"] == "event"
        assert "flank" in body["tags"]["good"]
        assert "free_death" in body["tags"]["bad"]
        assert body["video_url"] == ""
        assert body["embed_url"] == ""

    def test_match_url(self, client):
        body = client.post("/session/match-url", json={"url": MATCH_URL}).json()
        assert body["match_id"] == "abc123"
        assert body["changed"] is True
        assert body["notices"] == []

    def test_invalid_match_url_notice(self, client):
        body = client.post("/session/match-url", json={"url": "https://example.com/x"}).json()
        assert body["match_id"] is None
        assert body["notices"][0]["target"] == "match_url"
        assert body["notices"][0]["level"] == "error"

    def test_video(self, client):
        body = client.post("/session/video", json={"url": "https://youtu.be/abc?t=75", "submit": True}).json()
        assert body["video_id"] == "abc"
        assert body["video_start"] == "1:15"
        assert body["video_url"] == "https://www.youtube.com/watch?v=abc"
        assert body["embed_url"].endswith("&start=75")

    def test_crop_and_zoom(self, client):
        assert client.post("/session/crop", json={"crop": "tl"}).json()["crop"] == "tl"
        assert client.post("/session/zoom/toggle").json()["crop"] == "bl"

    def test_unknown_request_field_rejected(self, client):
        response = client.post("/session/player", json={"player": "x", "team": "y"})
        assert response.status_code == 422

    def test_reset_needs_confirmation(self, labelled_client):
        labelled_client.post("/records/tags/flank")

        response = labelled_client.post("/session/reset")
        assert response.status_code == 409
        assert "This will clear all events" in response.json()["detail"]

        body = labelled_client.post("/session/reset", params={"confirmed": "true"}).json()
        assert body["records"] == []
        assert body["player"] == ""


class TestRecordEndpoints:
    def test_log_tag_with_reading(self, labelled_client):
        body = labelled_client.post("/records/tags/flank", params={"at": 12.9}).json()
        [record] = body["records"]
        assert record["video_time"] == 12
        assert record["event"] == "flank"
        assert record["player"] == "Shotzzy"

    def test_unknown_tag(self, labelled_client):
        response = labelled_client.post("/records/tags/teabag")
        assert response.status_code == 400

    def test_display_order_newest_first(self, labelled_client):
        for t in (5, 10, 15):
            labelled_client.post("/records/tags/flank", params={"at": t})
        body = labelled_client.get("/session").json()
        assert body["display_order"] == [2, 1, 0]

    def test_append_without_labels_needs_confirmation(self, client):
        body = client.post("/records", json={"fields": {"event": "flank"}}).json()
        assert body["records"] == []
        assert body["notices"][0]["level"] == "alert"

        body = client.post("/records", params={"confirmed": "true"}, json={"fields": {"event": "flank"}}).json()
        assert len(body["records"]) == 1

    def test_update_and_missing_index(self, labelled_client):
        labelled_client.post("/records/tags/flank", params={"at": 1})
        body = labelled_client.put("/records/0", json={"fields": {"video_time": 30}}).json()
        assert body["records"][0]["video_time"] == 30

        assert labelled_client.put("/records/9", json={"fields": {}}).status_code == 404

    def test_invalid_fields(self, labelled_client):
        labelled_client.post("/records/tags/flank", params={"at": 1})
        response = labelled_client.put("/records/0", json={"fields": {"video_time": -4}})
        assert response.status_code == 422

    def test_edit_cycle(self, labelled_client):
        labelled_client.post("/records/tags/flank", params={"at": 1})
        assert labelled_client.post("/records/0/edit").json()["editing_index"] == 0

        body = labelled_client.post("/records/submit", json={"fields": {"event": "bad_trade"}}).json()
        assert body["editing_index"] is None
        assert body["records"][0]["event"] == "bad_trade"

        labelled_client.post("/records/0/edit")
        assert labelled_client.delete("/records/edit").json()["editing_index"] is None

    def test_delete_needs_confirmation(self, labelled_client):
        labelled_client.post("/records/tags/flank", params={"at": 12})

        response = labelled_client.delete("/records/0")
        assert response.status_code == 409
        assert response.json()["detail"] == "Delete flank at 0:12?"

        body = labelled_client.delete("/records/0", params={"confirmed": "true"}).json()
        assert body["records"] == []

    def test_delete_missing_index(self, client):
        assert client.delete("/records/3", params={"confirmed": "true"}).status_code == 404


class TestExportAndRoster:
    def test_empty_export(self, client):
        response = client.get("/export.csv")
        assert response.status_code == 400
        assert response.json()["detail"] == "No events to export."

    def test_export_download(self, labelled_client):
        labelled_client.post("/records/tags/flank", params={"at": 3})
        response = labelled_client.get("/export.csv")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="events_abc123_Shotzzy_Hardpoint.csv"' in response.headers["content-disposition"]
        assert response.text.startswith("match_id,game_mode,player,event,value,video_time,youtube_url\n")

    def test_roster(self, client):
        body = client.post("/roster", json={"text": "player_name\nA\nB", "source_name": "team.csv"}).json()
        assert body["roster"] == ["A", "B"]
        assert body["notices"][0]["message"] == "Loaded 2 players from team.csv"
        assert client.get("/roster").json() == ["A", "B"]


class TestIntentEndpoint:
    def test_generic_intent(self, client):
        body = client.post("/intents", json={"type": "set_mode", "mode": "Control"}).json()
        assert body["mode"] == "Control"

    def test_bad_intent(self, client):
        assert client.post("/intents", json={"type": "nope"}).status_code == 400

    def test_export_not_available_here(self, client):
        assert client.post("/intents", json={"type": "export_csv"}).status_code == 400


class TestAppFactory:
    def test_builds_controller_from_settings(self, settings):
        settings.roster_path.write_text("player_name\nKenny\n")
        client = TestClient(create_app(settings=settings))

        assert client.get("/roster").json() == ["Kenny"]

        client.post("/session/player", json={"player": "Kenny"})
        assert (settings.storage_dir / "pff_esports_session_v1.json").exists()

    def test_missing_roster_file_is_not_fatal(self, settings):
        client = TestClient(create_app(settings=settings))
        assert client.get("/roster").json() == []
