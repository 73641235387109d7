from datetime import datetime

from fastapi.testclient import TestClient

from conftest import ACCOUNT_A, API_KEY, ScriptedClient, snapshot

from playtime_watcher.models import ActivityEvent
from playtime_watcher.reporting import ActivityFeed
from playtime_watcher.webapp import create_app


def build_app(settings, feed):
    client = ScriptedClient([snapshot((1, "A", 10))] * 10000)
    return create_app(
        api_key=API_KEY,
        entries=[(ACCOUNT_A, "alice")],
        settings=settings,
        feed=feed,
        client_factory=lambda *args: client,
    )


def test_status_reports_running_watchers(settings):
    app = build_app(settings, ActivityFeed())

    with TestClient(app) as http:
        payload = http.get("/api/status").json()

    assert payload["running"] is True
    assert payload["min_interval_seconds"] == 0.01
    assert [entry["label"] for entry in payload["accounts"]] == ["alice"]
    assert not app.state.supervisor.is_running()


def test_events_are_returned_newest_first(settings):
    feed = ActivityFeed()
    for name, session in (("Old", None), ("New", 12)):
        feed(
            ActivityEvent(
                account_label="alice",
                title_name=name,
                total_playtime_minutes=40,
                session_minutes=session,
                detected_at=datetime(2024, 5, 1, 20, 30),
            )
        )
    app = build_app(settings, feed)

    with TestClient(app) as http:
        events = http.get("/api/events", params={"limit": 5}).json()["events"]

    assert [item["title"] for item in events] == ["New", "Old"]
    assert events[0]["session_minutes"] == 12
    assert events[1]["first_session"] is True
    assert events[0]["message"].endswith("Session: 12 min. Total: 40 min.")
    assert events[0]["detected_at"] == "2024-05-01T20:30:00"


def test_events_limit_is_validated(settings):
    app = build_app(settings, ActivityFeed())
    with TestClient(app) as http:
        assert http.get("/api/events", params={"limit": 0}).status_code == 422
