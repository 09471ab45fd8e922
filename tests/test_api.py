"""Tests for the HTTP surface: matching trigger, force-match, calendar view, health."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from circlematch.api.dependencies.database import get_db, get_session_factory
from circlematch.api.dependencies.services import get_calendar, get_now
from circlematch.api.main import create_application

from factories import local, seed_waitlist


@pytest.fixture
def app(session_factory, calendar):
    app = create_application()

    async def override_get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_calendar] = lambda: calendar
    app.dependency_overrides[get_now] = lambda: local(10, 0, 20)
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestRunEndpoint:
    async def test_run_at_deadline(self, client, session_factory, eleven_am):
        await seed_waitlist(session_factory, eleven_am.starts_at, 6)

        response = await client.post("/matching/run")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        result = body["results"][0]
        assert result["slotKey"] == "2026-10-19_11AM"
        assert result["circlesCreated"] == 2
        assert result["usersMatched"] == 6
        assert result["status"] == "matched"

    async def test_run_is_idempotent(self, client, session_factory, eleven_am):
        await seed_waitlist(session_factory, eleven_am.starts_at, 4)

        first = (await client.post("/matching/run")).json()["results"][0]
        second = (await client.post("/matching/run")).json()["results"][0]

        assert second["status"] == "skipped"
        assert second["circleIds"] == first["circleIds"] == ["2026-10-19_11AM_Circle_1"]

    async def test_run_with_explicit_instant(self, client):
        response = await client.post("/matching/run", params={"at": "2026-10-19T12:00:00"})
        assert response.status_code == 200
        assert response.json()["results"] == []

    async def test_run_with_utc_instant(self, client):
        response = await client.post("/matching/run", params={"at": "2026-10-19T20:00:10Z"})
        body = response.json()
        assert [r["slotKey"] for r in body["results"]] == ["2026-10-19_2PM"]
        assert body["results"][0]["status"] == "empty"

    async def test_bad_instant(self, client):
        response = await client.post("/matching/run", params={"at": "tomorrow-ish"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestForceMatchEndpoint:
    async def test_force_match(self, client, session_factory, calendar):
        occurrence = calendar.get_occurrence(local(0).date(), "5PM")
        await seed_waitlist(session_factory, occurrence.starts_at, 3)

        response = await client.post("/matching/slots/2026-10-19/5pm")

        assert response.status_code == 200
        assert response.json()["circleIds"] == ["2026-10-19_5PM_Circle_1"]

    async def test_already_matched_is_conflict(self, client):
        await client.post("/matching/slots/2026-10-19/5PM")

        response = await client.post("/matching/slots/2026-10-19/5PM")

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "CONFLICT"
        assert error["details"] == {"slot_key": "2026-10-19_5PM"}

    async def test_unknown_slot(self, client):
        response = await client.post("/matching/slots/2026-10-19/9AM")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_bad_date(self, client):
        response = await client.post("/matching/slots/2026-19-10/11AM")
        assert response.status_code == 400


class TestCalendarEndpoints:
    async def test_slots_view(self, client, session_factory, calendar):
        two_pm = calendar.get_occurrence(local(0).date(), "2PM")
        await seed_waitlist(session_factory, two_pm.starts_at, 3)
        await client.post("/matching/run")

        response = await client.get("/matching/slots", params={"at": "2026-10-19T10:30:00"})

        assert response.status_code == 200
        body = response.json()
        assert body["displayDate"] == "2026-10-19"
        assert body["nextAvailableSlot"] == "2026-10-19_2PM"
        slots = {s["slotLabel"]: s for s in body["slots"]}
        assert list(slots) == ["11AM", "2PM", "5PM"]
        assert slots["11AM"]["state"] == "post_deadline"
        assert slots["11AM"]["acceptingSignups"] is False
        assert slots["11AM"]["matchingStatus"] == "done"
        assert slots["2PM"]["state"] == "pre_deadline"
        assert slots["2PM"]["matchingStatus"] == "not_started"
        assert slots["2PM"]["waitlistCount"] == 3
        assert slots["11AM"]["waitlistCount"] == 0

    async def test_slots_after_rollover(self, client):
        response = await client.get("/matching/slots", params={"at": "2026-10-19T21:15:00"})
        body = response.json()
        assert body["displayDate"] == "2026-10-20"
        assert body["slots"][0]["slotKey"] == "2026-10-20_11AM"

    async def test_runs(self, client, session_factory, eleven_am):
        await seed_waitlist(session_factory, eleven_am.starts_at, 2)
        await client.post("/matching/run")

        response = await client.get("/matching/runs")

        assert response.status_code == 200
        runs = response.json()
        assert len(runs) == 1
        assert runs[0]["slotKey"] == "2026-10-19_11AM"
        assert runs[0]["status"] == "done"
        assert runs[0]["attempts"] == 1
        assert runs[0]["summary"]["circlesCreated"] == 1

    async def test_runs_limit_validated(self, client):
        response = await client.get("/matching/runs", params={"limit": 0})
        assert response.status_code == 400


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_live(self, client):
        assert (await client.get("/live")).json() == {"status": "alive"}

    async def test_ready(self, client):
        with patch("circlematch.api.handlers.health_handler.check_db", AsyncMock(return_value=True)):
            response = await client.get("/ready")
        assert response.status_code == 200

    async def test_not_ready_without_database(self, client):
        failure = OperationalError("SELECT 1", {}, Exception("connection refused"))
        with patch("circlematch.api.handlers.health_handler.check_db", AsyncMock(side_effect=failure)):
            response = await client.get("/ready")
        assert response.status_code == 503
