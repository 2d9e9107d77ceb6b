from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.deps import get_db
from app.db.models.agent_action_log import AgentActionLog
from app.db.models.calendar import Calendar, CalendarMember
from app.db.models.event import Event
from app.db.models.task import Task, TaskDependency
from app.db.models.user import User
from app.main import app


def _testing_sessionmaker(create_tables: bool = True):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    if create_tables:
        for model in (User, Task, TaskDependency, Calendar, CalendarMember, Event, AgentActionLog):
            model.__table__.create(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def _override(TestingSessionLocal):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    return override_get_db


@pytest.fixture()
def client():
    TestingSessionLocal = _testing_sessionmaker()
    app.dependency_overrides[get_db] = _override(TestingSessionLocal)
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def _seed_user(session_factory) -> UUID:
    with session_factory() as db:
        user = User(id=uuid4())
        db.add(user)
        db.commit()
        return user.id


def _seed_task(session_factory, user_id: UUID, dashboard_id: UUID, **kwargs) -> UUID:
    with session_factory() as db:
        task = Task(created_by_id=user_id, dashboard_id=dashboard_id, title=kwargs.pop("title", "Task"), **kwargs)
        db.add(task)
        db.commit()
        return task.id


def _seed_personal_calendar(session_factory, user_id: UUID) -> UUID:
    with session_factory() as db:
        calendar = Calendar(name="Personal", context_type="PERSONAL", context_id=user_id, is_primary=True)
        db.add(calendar)
        db.flush()
        db.add(CalendarMember(calendar_id=calendar.id, user_id=user_id, role="OWNER"))
        db.commit()
        return calendar.id


def _suggestions(test_client: TestClient, user_id: UUID, dashboard_id: UUID):
    return test_client.get(
        "/scheduling/suggestions",
        params={"user_id": str(user_id), "dashboard_id": str(dashboard_id)},
    )


def test_suggestions_without_calendars_fall_back_to_priority(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    dashboard_id = uuid4()
    urgent_id = _seed_task(session_factory, user_id, dashboard_id, title="Ship release", priority="URGENT")
    _seed_task(session_factory, user_id, dashboard_id, title="Tidy notes", priority="LOW", time_estimate=90)

    before = datetime.now(timezone.utc)
    response = _suggestions(test_client, user_id, dashboard_id)
    after = datetime.now(timezone.utc)

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["user_id"] == str(user_id)
    assert body["request_id"] == response.headers["X-Request-Id"]

    first, second = body["suggestions"]
    assert first["task_id"] == str(urgent_id)
    assert first["confidence"] == 0.7
    assert first["reasoning"] == "Suggested based on priority (URGENT)"
    assert first["factors"] == [{"type": "priority", "impact": 0.3, "description": "URGENT priority task"}]
    assert first["current_due_date"] is None
    suggested = datetime.fromisoformat(first["suggested_due_date"])
    assert before + timedelta(days=1) <= suggested <= after + timedelta(days=1)
    assert "conflicts" not in first
    assert "suggested_start_date" not in first

    assert second["confidence"] == 0.5
    assert "suggested_start_date" not in second


def test_suggestions_report_conflicts_with_calendar_events(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    dashboard_id = uuid4()
    calendar_id = _seed_personal_calendar(session_factory, user_id)
    task_id = _seed_task(session_factory, user_id, dashboard_id, title="Ship release", priority="URGENT")

    tomorrow = datetime.now(timezone.utc).date() + timedelta(days=1)
    day_start = datetime.combine(tomorrow, time.min, tzinfo=timezone.utc)
    with session_factory() as db:
        offsite = Event(
            calendar_id=calendar_id,
            title="Team offsite",
            start_at=day_start,
            end_at=day_start + timedelta(days=1),
            all_day=True,
        )
        db.add(offsite)
        db.commit()
        offsite_id = offsite.id

    response = _suggestions(test_client, user_id, dashboard_id)

    assert response.status_code == 200
    (suggestion,) = response.json()["suggestions"]
    assert suggestion["task_id"] == str(task_id)
    assert suggestion["confidence"] == 0.5
    assert suggestion["conflicts"][0]["event_id"] == str(offsite_id)
    assert suggestion["conflicts"][0]["event_title"] == "Team offsite"
    assert suggestion["reasoning"] == (
        "Urgent priority requires immediate attention. Warning: 1 potential conflict(s) with calendar events"
    )
    assert [factor["type"] for factor in suggestion["factors"]] == ["priority"]


def test_suggestions_with_calendar_and_free_week_propose_a_slot(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    dashboard_id = uuid4()
    _seed_personal_calendar(session_factory, user_id)
    _seed_task(session_factory, user_id, dashboard_id, title="Write report", priority="HIGH", time_estimate=120)

    response = _suggestions(test_client, user_id, dashboard_id)

    assert response.status_code == 200
    (suggestion,) = response.json()["suggestions"]
    assert suggestion["suggested_start_date"] == suggestion["suggested_due_date"]
    assert suggestion["confidence"] == 0.7
    assert suggestion["reasoning"] == "High priority task. Requires 2.0 hours"
    assert "conflicts" not in suggestion


def test_suggestions_reject_invalid_user_id(client):
    test_client, _ = client
    response = test_client.get(
        "/scheduling/suggestions",
        params={"user_id": "not-a-uuid", "dashboard_id": str(uuid4())},
    )
    assert response.status_code == 422


def test_suggestions_return_500_when_store_is_unavailable():
    broken_sessions = _testing_sessionmaker(create_tables=False)
    app.dependency_overrides[get_db] = _override(broken_sessions)
    try:
        with TestClient(app) as test_client:
            response = _suggestions(test_client, uuid4(), uuid4())
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to generate scheduling suggestions"}


def test_analyze_summarizes_requested_tasks(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    dashboard_id = uuid4()
    urgent_id = _seed_task(session_factory, user_id, dashboard_id, title="Ship release", priority="URGENT")
    low_id = _seed_task(session_factory, user_id, dashboard_id, title="Tidy notes", priority="LOW")
    _seed_task(session_factory, user_id, dashboard_id, title="Not requested", priority="HIGH")

    response = test_client.post(
        "/scheduling/analyze",
        json={
            "user_id": str(user_id),
            "dashboard_id": str(dashboard_id),
            "task_ids": [str(urgent_id), str(low_id)],
        },
    )

    assert response.status_code == 200
    analysis = response.json()["analysis"]
    assert [item["task_id"] for item in analysis["suggestions"]] == [str(urgent_id), str(low_id)]
    assert analysis["summary"] == {
        "total_tasks": 2,
        "needs_scheduling": 2,
        "high_confidence": 1,
        "medium_confidence": 1,
        "low_confidence": 0,
        "conflicts": 0,
    }


def test_apply_updates_owned_tasks_and_logs_action(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    other_user_id = _seed_user(session_factory)
    dashboard_id = uuid4()
    own_task = _seed_task(session_factory, user_id, dashboard_id, title="Ship release")
    foreign_task = _seed_task(session_factory, other_user_id, dashboard_id, title="Someone else's")
    due = datetime(2026, 11, 2, 9, 0, tzinfo=timezone.utc)

    response = test_client.post(
        "/scheduling/apply",
        json={
            "user_id": str(user_id),
            "changes": [
                {
                    "task_id": str(own_task),
                    "suggested_due_date": due.isoformat(),
                    "suggested_start_date": due.isoformat(),
                },
                {"task_id": str(foreign_task), "suggested_due_date": due.isoformat()},
                {"task_id": str(uuid4()), "suggested_due_date": due.isoformat()},
            ],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["updated"] == 1
    assert body["failed"] == 2
    assert body["total"] == 3

    with session_factory() as db:
        task = db.get(Task, own_task)
        assert task.due_date == due
        assert task.start_date == due
        assert db.get(Task, foreign_task).due_date is None

        logs = db.query(AgentActionLog).filter(AgentActionLog.user_id == user_id).all()
        assert len(logs) == 1
        assert logs[0].action_type == "scheduling_applied"
        assert logs[0].action_payload["task_ids"] == [str(own_task)]
        assert logs[0].request_id == body["request_id"]


def test_apply_without_matches_writes_no_log(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)

    response = test_client.post(
        "/scheduling/apply",
        json={
            "user_id": str(user_id),
            "changes": [{"task_id": str(uuid4()), "suggested_due_date": "2026-11-02T09:00:00+00:00"}],
        },
    )

    assert response.status_code == 200
    assert response.json()["updated"] == 0
    with session_factory() as db:
        assert db.query(AgentActionLog).count() == 0


def test_apply_requires_at_least_one_change(client):
    test_client, session_factory = client
    user_id = _seed_user(session_factory)

    response = test_client.post("/scheduling/apply", json={"user_id": str(user_id), "changes": []})

    assert response.status_code == 422
