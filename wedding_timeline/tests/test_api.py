"""
API endpoint tests for all routes.
Uses in-memory SQLite + dependency-overridden FastAPI test client.
"""
from datetime import date, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

from sqlalchemy.exc import SQLAlchemyError

from wedding_timeline.agents.base_agent import BaseAgent
from wedding_timeline.errors import AIServiceError
from wedding_timeline.models.wedding import PartyMember
from wedding_timeline.services.claude_service import claude_service
from wedding_timeline.services.notification_service import notification_service


async def _create_task(client, wedding_id, **fields):
    payload = {"wedding_id": wedding_id, "task_name": "Task", **fields}
    r = await client.post("/api/tasks/", json=payload)
    assert r.status_code == 200, r.text
    return r.json()


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


# ===================== WEDDINGS =====================


async def test_create_and_get_wedding(client):
    r = await client.post("/api/weddings/", json={
        "name": "Lee / Park",
        "wedding_date": "2026-06-20",
        "coordinator_email": "plan@example.com",
    })
    assert r.status_code == 200
    wedding = r.json()
    assert wedding["completion_percentage"] == 0

    r = await client.get(f"/api/weddings/{wedding['id']}")
    assert r.status_code == 200
    assert r.json()["name"] == "Lee / Park"


async def test_get_missing_wedding(client):
    r = await client.get("/api/weddings/999")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "WEDDING_NOT_FOUND"


async def test_members(client, seed_data):
    wedding_id = seed_data["wedding"].id
    r = await client.post(f"/api/weddings/{wedding_id}/members", json={
        "first_name": "Chris", "role": "groomsman", "email": "chris@example.com",
    })
    assert r.status_code == 200
    assert r.json()["measurements_status"] == "pending"

    r = await client.get(f"/api/weddings/{wedding_id}/members")
    assert [m["first_name"] for m in r.json()] == ["Sam", "Alex", "Chris"]


async def test_generate_milestone_tasks(client, seed_data):
    wedding_id = seed_data["wedding"].id
    r = await client.post(f"/api/weddings/{wedding_id}/milestones")
    assert r.status_code == 200
    tasks = r.json()

    assert len(tasks) == 7
    assert all(t["is_milestone"] and t["auto_created"] for t in tasks)
    assert tasks[0]["status"] == "pending"
    assert all(t["status"] == "blocked" for t in tasks[1:])
    assert tasks[1]["prerequisite_task_ids"] == [tasks[0]["id"]]
    # Two registered members -> one day per milestone, doubled in the last two weeks
    assert tasks[0]["estimated_duration_hours"] == 8
    assert tasks[-1]["estimated_duration_hours"] == 16


async def test_unchained_milestones_are_all_ready(client, seed_data):
    wedding_id = seed_data["wedding"].id
    r = await client.post(f"/api/weddings/{wedding_id}/milestones", json={"chain": False, "party_size": 9})
    assert r.status_code == 200
    assert {t["status"] for t in r.json()} == {"pending"}


async def test_preview_milestones(client, seed_data):
    wedding_id = seed_data["wedding"].id
    r = await client.get(f"/api/weddings/{wedding_id}/milestones/preview?party_size=10")
    assert r.status_code == 200
    plan = r.json()
    assert plan["complexity_level"] == "high"
    assert len(plan["milestones"]) == 7

    r = await client.get("/api/tasks/", params={"wedding_id": wedding_id})
    assert r.json() == []


# ===================== TASKS =====================


async def test_create_task_defaults(client, seed_data):
    task = await _create_task(client, seed_data["wedding"].id, task_name="Book venue")
    assert task["status"] == "pending"
    assert task["category"] == "other"
    assert task["phase"] == "planning"
    assert task["priority"] == "medium"
    assert task["prerequisite_task_ids"] == []
    assert task["completion_percentage"] == 0


async def test_create_task_requires_name(client, seed_data):
    r = await client.post("/api/tasks/", json={"wedding_id": seed_data["wedding"].id})
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_create_task_accepts_legacy_dependency_field(client, seed_data):
    wedding_id = seed_data["wedding"].id
    first = await _create_task(client, wedding_id)
    second = await _create_task(client, wedding_id, dependent_task_ids=[first["id"]])
    assert second["prerequisite_task_ids"] == [first["id"]]
    assert second["status"] == "blocked"


async def test_create_task_with_unknown_prerequisite_is_blocked(client, seed_data):
    task = await _create_task(client, seed_data["wedding"].id, prerequisite_task_ids=[12345])
    assert task["status"] == "blocked"


async def test_create_task_rejects_foreign_member(client, seed_data):
    r = await client.post("/api/weddings/", json={"name": "Other", "wedding_date": "2026-01-01"})
    other_id = r.json()["id"]

    r = await client.post("/api/tasks/", json={
        "wedding_id": other_id,
        "task_name": "Measure",
        "assigned_member_id": seed_data["groom"].id,
    })
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_get_missing_task(client):
    r = await client.get("/api/tasks/999")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "TASK_NOT_FOUND"


async def test_complete_propagates_and_syncs_member(client, seed_data):
    wedding_id = seed_data["wedding"].id
    groom_id = seed_data["groom"].id

    measure = await _create_task(
        client, wedding_id, task_name="Collect measurements",
        category="measurements", assigned_member_id=groom_id,
    )
    order = await _create_task(
        client, wedding_id, task_name="Place order",
        category="orders", prerequisite_task_ids=[measure["id"]],
    )
    assert order["status"] == "blocked"

    r = await client.get(f"/api/tasks/{measure['id']}")
    assert r.json()["triggers_tasks"] == [order["id"]]

    r = await client.post(f"/api/tasks/{order['id']}/complete")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "TASK_BLOCKED"

    r = await client.post(f"/api/tasks/{measure['id']}/complete", json={"completion_notes": "All in"})
    assert r.status_code == 200
    result = r.json()
    assert result["task"]["status"] == "completed"
    assert result["task"]["completion_percentage"] == 100
    assert result["task"]["completed_at"] is not None
    assert result["task"]["completion_notes"] == "All in"
    assert result["status_changes"] == [
        {"task_id": order["id"], "previous_status": "blocked", "new_status": "pending"}
    ]
    assert result["member_synced"] is True

    r = await client.get(f"/api/weddings/{wedding_id}/members")
    groom = next(m for m in r.json() if m["id"] == groom_id)
    assert groom["measurements_status"] == "confirmed"

    r = await client.get(f"/api/weddings/{wedding_id}")
    assert r.json()["completion_percentage"] == 50
    assert r.json()["current_phase"] == "planning"


async def test_chain_completes_in_order(client, seed_data):
    wedding_id = seed_data["wedding"].id
    a = await _create_task(client, wedding_id, task_name="A")
    b = await _create_task(client, wedding_id, task_name="B", prerequisite_task_ids=[a["id"]])
    c = await _create_task(client, wedding_id, task_name="C", prerequisite_task_ids=[b["id"]])

    for task in (a, b, c):
        r = await client.post(f"/api/tasks/{task['id']}/complete")
        assert r.status_code == 200, r.text

    r = await client.get("/api/tasks/", params={"wedding_id": wedding_id})
    assert {t["status"] for t in r.json()} == {"completed"}


async def test_recompleting_keeps_original_timestamp(client, seed_data):
    task = await _create_task(client, seed_data["wedding"].id)
    first = (await client.post(f"/api/tasks/{task['id']}/complete")).json()
    second = (await client.post(f"/api/tasks/{task['id']}/complete")).json()
    assert second["task"]["completed_at"] == first["task"]["completed_at"]


async def test_reopening_blocks_dependents(client, seed_data):
    wedding_id = seed_data["wedding"].id
    a = await _create_task(client, wedding_id, task_name="A")
    b = await _create_task(client, wedding_id, task_name="B", prerequisite_task_ids=[a["id"]])
    await client.post(f"/api/tasks/{a['id']}/complete")

    r = await client.patch(f"/api/tasks/{a['id']}", json={"status": "pending"})
    assert r.status_code == 200
    body = r.json()
    assert body["task"]["status"] == "pending"
    assert body["task"]["completed_at"] is None
    assert body["status_changes"] == [
        {"task_id": b["id"], "previous_status": "pending", "new_status": "blocked"}
    ]


async def test_start_task(client, seed_data):
    wedding_id = seed_data["wedding"].id
    a = await _create_task(client, wedding_id)
    b = await _create_task(client, wedding_id, prerequisite_task_ids=[a["id"]])

    r = await client.post(f"/api/tasks/{b['id']}/start")
    assert r.status_code == 409

    r = await client.post(f"/api/tasks/{a['id']}/start")
    assert r.status_code == 200
    assert r.json()["status"] == "in_progress"
    assert r.json()["started_at"] is not None


async def test_update_rejects_cycle(client, seed_data):
    wedding_id = seed_data["wedding"].id
    a = await _create_task(client, wedding_id)
    b = await _create_task(client, wedding_id, prerequisite_task_ids=[a["id"]])

    r = await client.patch(f"/api/tasks/{a['id']}", json={"prerequisite_task_ids": [b["id"]]})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "DEPENDENCY_CYCLE"

    r = await client.patch(f"/api/tasks/{a['id']}", json={"prerequisite_task_ids": [a["id"]]})
    assert r.status_code == 400


async def test_update_prerequisites_regates_task(client, seed_data):
    wedding_id = seed_data["wedding"].id
    a = await _create_task(client, wedding_id, task_name="A")
    b = await _create_task(client, wedding_id, task_name="B", prerequisite_task_ids=[a["id"]])

    r = await client.patch(f"/api/tasks/{b['id']}", json={"prerequisite_task_ids": [], "priority": "high"})
    assert r.status_code == 200
    body = r.json()
    assert body["task"]["status"] == "pending"
    assert body["task"]["priority"] == "high"

    r = await client.get(f"/api/tasks/{a['id']}")
    assert r.json()["triggers_tasks"] == []


async def test_on_hold_task_still_waits_for_prerequisites(client, seed_data):
    wedding_id = seed_data["wedding"].id
    a = await _create_task(client, wedding_id, task_name="A")
    b = await _create_task(client, wedding_id, task_name="B", prerequisite_task_ids=[a["id"]])

    r = await client.patch(f"/api/tasks/{b['id']}", json={"status": "on_hold"})
    assert r.status_code == 200
    assert r.json()["task"]["status"] == "on_hold"

    r = await client.post(f"/api/tasks/{b['id']}/complete")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "TASK_BLOCKED"

    r = await client.post(f"/api/tasks/{b['id']}/start")
    assert r.status_code == 409

    r = await client.patch(f"/api/tasks/{b['id']}", json={"status": "completed"})
    assert r.status_code == 409

    r = await client.post(f"/api/tasks/{a['id']}/complete")
    assert r.status_code == 200
    assert r.json()["status_changes"] == []

    r = await client.post(f"/api/tasks/{b['id']}/complete")
    assert r.status_code == 200
    assert r.json()["task"]["status"] == "completed"


async def test_patch_cannot_add_unmet_prerequisite_and_complete(client, seed_data):
    wedding_id = seed_data["wedding"].id
    a = await _create_task(client, wedding_id, task_name="A")
    c = await _create_task(client, wedding_id, task_name="C")

    r = await client.patch(f"/api/tasks/{c['id']}", json={
        "prerequisite_task_ids": [a["id"]],
        "status": "completed",
    })
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "TASK_BLOCKED"

    r = await client.get(f"/api/tasks/{c['id']}")
    assert r.json()["status"] == "pending"
    assert r.json()["prerequisite_task_ids"] == []

    r = await client.get(f"/api/tasks/{a['id']}")
    assert r.json()["triggers_tasks"] == []


async def test_patch_null_clears_optional_fields(client, seed_data):
    task = await _create_task(
        client, seed_data["wedding"].id,
        description="Navy, slim fit",
        due_date=str(date.today() + timedelta(days=10)),
        assigned_member_id=seed_data["groom"].id,
    )

    r = await client.patch(f"/api/tasks/{task['id']}", json={
        "description": None, "due_date": None, "assigned_member_id": None,
    })
    assert r.status_code == 200
    updated = r.json()["task"]
    assert updated["description"] is None
    assert updated["due_date"] is None
    assert updated["assigned_member_id"] is None
    assert updated["task_name"] == task["task_name"]

    r = await client.patch(f"/api/tasks/{task['id']}", json={"task_name": None})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_member_sync_failure_keeps_completion(client, seed_data, db_session):
    wedding_id = seed_data["wedding"].id
    measure = await _create_task(
        client, wedding_id, task_name="Collect measurements",
        category="measurements", assigned_member_id=seed_data["groom"].id,
    )
    order = await _create_task(client, wedding_id, task_name="Place order",
                               prerequisite_task_ids=[measure["id"]])

    real_get = db_session.get

    async def get_with_locked_members(entity, ident, **kwargs):
        if entity is PartyMember:
            raise SQLAlchemyError("party_members row is locked")
        return await real_get(entity, ident, **kwargs)

    with patch.object(db_session, "get", new=get_with_locked_members):
        r = await client.post(f"/api/tasks/{measure['id']}/complete")

    assert r.status_code == 200
    result = r.json()
    assert result["task"]["status"] == "completed"
    assert result["member_synced"] is False
    assert result["status_changes"] == [
        {"task_id": order["id"], "previous_status": "blocked", "new_status": "pending"}
    ]

    r = await client.get(f"/api/weddings/{wedding_id}/members")
    groom = next(m for m in r.json() if m["id"] == seed_data["groom"].id)
    assert groom["measurements_status"] == "pending"


async def test_list_tasks_ordering_and_filters(client, seed_data):
    wedding_id = seed_data["wedding"].id
    today = date.today()
    await _create_task(client, wedding_id, task_name="Later", due_date=str(today + timedelta(days=20)))
    await _create_task(client, wedding_id, task_name="Low", priority="low", due_date=str(today + timedelta(days=2)))
    await _create_task(client, wedding_id, task_name="Critical", priority="critical", due_date=str(today + timedelta(days=2)))
    await _create_task(client, wedding_id, task_name="Late", due_date=str(today - timedelta(days=1)))

    r = await client.get("/api/tasks/", params={"wedding_id": wedding_id})
    names = [t["task_name"] for t in r.json()]
    assert names == ["Late", "Critical", "Low", "Later"]
    late = r.json()[0]
    assert late["is_overdue"] is True
    assert late["days_until_due"] == -1

    r = await client.get("/api/tasks/", params={"wedding_id": wedding_id, "overdue_only": True})
    assert [t["task_name"] for t in r.json()] == ["Late"]

    r = await client.get("/api/tasks/", params={"wedding_id": wedding_id, "upcoming_only": True})
    assert [t["task_name"] for t in r.json()] == ["Critical", "Low"]

    r = await client.get("/api/tasks/", params={"wedding_id": wedding_id, "priority": "low"})
    assert [t["task_name"] for t in r.json()] == ["Low"]


async def test_bulk_create_reports_each_item(client, seed_data):
    wedding_id = seed_data["wedding"].id
    r = await client.post("/api/tasks/bulk", json={
        "wedding_id": wedding_id,
        "tasks": [
            {"task_name": "Send invites", "category": "communication"},
            {"description": "no name"},
            {"task_name": "Elsewhere", "wedding_id": 999},
        ],
    })
    assert r.status_code == 200
    body = r.json()
    assert body["created_count"] == 1
    assert body["total_attempts"] == 3
    assert [res["success"] for res in body["results"]] == [True, False, False]
    assert body["results"][0]["task"]["auto_created"] is True


# ===================== TIMELINE =====================


async def test_timeline_view_endpoint(client, seed_data):
    wedding_id = seed_data["wedding"].id
    await _create_task(client, wedding_id, phase="orders", priority="critical")

    r = await client.get(f"/api/timeline/{wedding_id}")
    assert r.status_code == 200
    view = r.json()
    assert len(view["phases"]) == 9
    assert view["phases"]["orders"]["total"] == 1
    assert view["phases"]["setup"]["progress"] == 0
    assert len(view["critical_tasks"]) == 1


async def test_timeline_for_missing_wedding(client):
    r = await client.get("/api/timeline/999")
    assert r.status_code == 404


async def test_critical_path_endpoint(client, seed_data):
    wedding_id = seed_data["wedding"].id
    for hours in (10, 8, None, 12):
        await _create_task(client, wedding_id, category="orders", estimated_duration_hours=hours)

    r = await client.get(f"/api/timeline/{wedding_id}/critical-path")
    assert r.status_code == 200
    assert r.json()["estimated_total_hours"] == 38


async def test_analytics_endpoint(client, seed_data):
    wedding_id = seed_data["wedding"].id
    a = await _create_task(client, wedding_id)
    await _create_task(client, wedding_id, prerequisite_task_ids=[a["id"]])

    r = await client.get(f"/api/timeline/{wedding_id}/analytics")
    assert r.status_code == 200
    analytics = r.json()
    assert analytics["total_tasks"] == 2
    assert analytics["blocked_tasks"] == 1


async def test_conflicts_endpoint(client, seed_data):
    wedding_id = seed_data["wedding"].id
    await _create_task(client, wedding_id, prerequisite_task_ids=[4242])

    r = await client.get(f"/api/timeline/{wedding_id}/conflicts")
    assert r.status_code == 200
    report = r.json()
    assert report["requires_manual_review"] is True
    assert report["dependency_violations"][0]["type"] == "missing_prerequisite"


async def test_reconcile_endpoint_is_idempotent(client, seed_data):
    wedding_id = seed_data["wedding"].id
    await _create_task(client, wedding_id)

    r = await client.post(f"/api/timeline/{wedding_id}/reconcile")
    assert r.status_code == 200
    assert r.json() == []


async def test_send_reminders(client, seed_data):
    wedding_id = seed_data["wedding"].id
    tomorrow = str(date.today() + timedelta(days=1))
    await _create_task(client, wedding_id, task_name="Pick up suit", due_date=tomorrow,
                       assigned_member_id=seed_data["groom"].id)
    await _create_task(client, wedding_id, task_name="No email", due_date=tomorrow,
                       assigned_member_id=seed_data["best_man"].id)
    await _create_task(client, wedding_id, task_name="Far off",
                       due_date=str(date.today() + timedelta(days=30)),
                       assigned_member_id=seed_data["groom"].id)

    with patch.object(notification_service, "send", new_callable=AsyncMock) as mock:
        mock.return_value = True
        r = await client.post(f"/api/timeline/{wedding_id}/reminders")
        assert r.status_code == 200
        summary = r.json()
        assert summary["reminders_sent"] == 1
        assert summary["total_attempts"] == 1
        mock.assert_awaited_once()
        assert mock.await_args.args[0] == "sam@example.com"

        r = await client.post(f"/api/timeline/{wedding_id}/reminders")
        assert r.json()["total_attempts"] == 0


async def test_failed_reminder_is_retried_next_time(client, seed_data):
    wedding_id = seed_data["wedding"].id
    await _create_task(client, wedding_id, due_date=str(date.today()),
                       assigned_member_id=seed_data["groom"].id)

    with patch.object(notification_service, "send", new_callable=AsyncMock) as mock:
        mock.return_value = False
        r = await client.post(f"/api/timeline/{wedding_id}/reminders")
        assert r.json()["reminders_sent"] == 0
        assert r.json()["results"][0]["success"] is False

        r = await client.post(f"/api/timeline/{wedding_id}/reminders")
        assert r.json()["total_attempts"] == 1


async def test_milestone_completion_notifies_coordinator(client, seed_data):
    wedding_id = seed_data["wedding"].id
    r = await client.post(f"/api/weddings/{wedding_id}/milestones")
    first = r.json()[0]

    with patch.object(notification_service, "send", new_callable=AsyncMock) as mock:
        mock.return_value = False
        r = await client.post(f"/api/tasks/{first['id']}/complete")

    assert r.status_code == 200
    mock.assert_awaited_once()
    assert mock.await_args.args[0] == "coordinator@example.com"
    assert len(r.json()["status_changes"]) == 1


async def test_recommendations_fall_back_without_provider(client, seed_data):
    wedding_id = seed_data["wedding"].id
    await _create_task(client, wedding_id, task_name="Overdue thing",
                       due_date=str(date.today() - timedelta(days=2)))

    with patch.object(BaseAgent, "generate_structured_response", new_callable=AsyncMock) as mock:
        mock.side_effect = AIServiceError("AI service not configured")
        r = await client.post(f"/api/timeline/{wedding_id}/recommendations")

    assert r.status_code == 200
    body = r.json()
    assert body["source"] == "fallback"
    assert body["risk_level"] == "medium"
    assert "Overdue thing" in body["recommendations"][0]


async def test_recommendations_fall_back_on_empty_model_reply(client, seed_data):
    wedding_id = seed_data["wedding"].id
    await _create_task(client, wedding_id, task_name="Book fittings",
                       due_date=str(date.today() + timedelta(days=3)))

    fake_client = SimpleNamespace(messages=SimpleNamespace(
        create=AsyncMock(return_value=SimpleNamespace(content=[], stop_reason="max_tokens")),
    ))
    with patch.object(claude_service, "client", fake_client), \
            patch.object(claude_service, "_available", True):
        r = await client.post(f"/api/timeline/{wedding_id}/recommendations")

    assert r.status_code == 200
    assert r.json()["source"] == "fallback"
    fake_client.messages.create.assert_awaited_once()


async def test_progress_report(client, seed_data):
    wedding_id = seed_data["wedding"].id
    measure = await _create_task(
        client, wedding_id, task_name="Collect measurements",
        category="measurements", assigned_member_id=seed_data["groom"].id,
    )
    await _create_task(client, wedding_id, task_name="Overdue order",
                       due_date=str(date.today() - timedelta(days=3)))
    await client.post(f"/api/tasks/{measure['id']}/complete")

    r = await client.get(f"/api/timeline/{wedding_id}/progress-report")
    assert r.status_code == 200
    report = r.json()

    overview = report["wedding_overview"]
    assert overview["days_remaining"] == 120
    assert overview["overall_progress"] == 50

    party = report["party_progress"]
    assert party["total_members"] == 2
    assert party["measurements_completed"] == 1
    assert party["measurements_percentage"] == 50
    assert [m["name"] for m in party["outstanding_members"]] == ["Alex Jones"]

    assert report["task_progress"]["total_tasks"] == 2
    assert report["task_progress"]["completed_tasks"] == 1
    assert report["task_progress"]["overdue_tasks"] == 1

    health = report["timeline_health"]
    assert health["on_schedule"] is False
    assert health["risk_level"] == "medium"
    assert "Overdue order" in health["recommendations"][0]


async def test_progress_report_for_missing_wedding(client):
    r = await client.get("/api/timeline/999/progress-report")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "WEDDING_NOT_FOUND"


# ===================== ACTIONS =====================


async def test_unknown_action(client):
    r = await client.post("/api/timeline/actions", json={"action": "launch_rockets"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "UNKNOWN_ACTION"


async def test_action_missing_field(client):
    r = await client.post("/api/timeline/actions", json={"action": "get_timeline"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_action_create_and_complete(client, seed_data):
    wedding_id = seed_data["wedding"].id
    r = await client.post("/api/timeline/actions", json={
        "action": "create_task",
        "task_data": {"wedding_id": wedding_id, "task_name": "Choose ties", "category": "selection"},
    })
    assert r.status_code == 200
    task = r.json()["data"]
    assert task["task_name"] == "Choose ties"

    r = await client.post("/api/timeline/actions", json={
        "action": "complete_task",
        "task_id": task["id"],
        "task_data": {"completion_data": {"notes": "Navy"}},
    })
    assert r.status_code == 200
    assert r.json()["data"]["task"]["completion_notes"] == "Navy"

    r = await client.post("/api/timeline/actions", json={
        "action": "get_tasks",
        "wedding_id": wedding_id,
        "filters": {"status": "completed"},
    })
    assert [t["id"] for t in r.json()["data"]] == [task["id"]]


async def test_action_read_views(client, seed_data):
    wedding_id = seed_data["wedding"].id
    await _create_task(client, wedding_id)

    for action in ("get_timeline", "get_critical_path", "get_task_analytics", "send_reminders"):
        r = await client.post("/api/timeline/actions", json={"action": action, "wedding_id": wedding_id})
        assert r.status_code == 200, action
        assert "data" in r.json()


async def test_action_bulk_create(client, seed_data):
    r = await client.post("/api/timeline/actions", json={
        "action": "bulk_create_tasks",
        "wedding_id": seed_data["wedding"].id,
        "task_data": {"tasks": [{"task_name": "One"}, {"task_name": "Two"}]},
    })
    assert r.status_code == 200
    assert r.json()["data"]["created_count"] == 2


async def test_action_update_task(client, seed_data):
    task = await _create_task(client, seed_data["wedding"].id)
    r = await client.post("/api/timeline/actions", json={
        "action": "update_task",
        "task_id": task["id"],
        "task_data": {"status": "on_hold"},
    })
    assert r.status_code == 200
    assert r.json()["data"]["task"]["status"] == "on_hold"


async def test_action_bulk_create_reports_malformed_items(client, seed_data):
    r = await client.post("/api/timeline/actions", json={
        "action": "bulk_create_tasks",
        "wedding_id": seed_data["wedding"].id,
        "task_data": {"tasks": ["oops", {"task_name": "Fine"}]},
    })
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["created_count"] == 1
    assert body["total_attempts"] == 2
    assert body["results"][0]["success"] is False
    assert "must be an object" in body["results"][0]["error"]


async def test_action_complete_rejects_malformed_completion_data(client, seed_data):
    task = await _create_task(client, seed_data["wedding"].id)
    r = await client.post("/api/timeline/actions", json={
        "action": "complete_task",
        "task_id": task["id"],
        "task_data": {"completion_data": "done"},
    })
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"

    r = await client.get(f"/api/tasks/{task['id']}")
    assert r.json()["status"] == "pending"


async def test_action_progress_report(client, seed_data):
    r = await client.post("/api/timeline/actions", json={
        "action": "generate_progress_report",
        "wedding_id": seed_data["wedding"].id,
    })
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["party_progress"]["total_members"] == 2
    assert data["timeline_health"]["risk_level"] == "low"
