import uuid
from datetime import timedelta
from fastapi.testclient import TestClient

from taskcycle.main import app
from taskcycle.engine import dates

client = TestClient(app)


def owner():
    """Fresh owner per test so tests share the database without seeing each other."""
    return {"X-User-Id": f"user_{uuid.uuid4().hex[:8]}"}


def today():
    return dates.today()


def test_health():
    r = client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["today"] == today().isoformat()


def test_create_and_get_task():
    headers = owner()
    r = client.post("/api/v1/tasks", json={"title": "Write docs", "due_date": today().isoformat()}, headers=headers)
    assert r.status_code == 201
    task = r.json()
    assert task["title"] == "Write docs"
    assert task["display_number"].startswith(today().strftime("%Y%m%d") + "10")

    r2 = client.get(f"/api/v1/tasks/{task['id']}", headers=headers)
    assert r2.status_code == 200
    assert r2.json()["id"] == task["id"]


def test_tasks_are_invisible_to_other_owners():
    r = client.post("/api/v1/tasks", json={"title": "Private"}, headers=owner())
    task_id = r.json()["id"]

    r2 = client.get(f"/api/v1/tasks/{task_id}", headers=owner())
    assert r2.status_code == 404
    assert r2.json()["error"]["message"] == f"Task with id '{task_id}' not found"


def test_patch_task_and_clear_due_date():
    headers = owner()
    r = client.post("/api/v1/tasks", json={"title": "Patch me", "due_date": "2030-01-01"}, headers=headers)
    task_id = r.json()["id"]

    r2 = client.patch(f"/api/v1/tasks/{task_id}", json={"title": "Patched", "clear_due_date": True}, headers=headers)
    assert r2.status_code == 200
    assert r2.json()["title"] == "Patched"
    assert r2.json()["due_date"] is None


def test_empty_title_is_400():
    r = client.post("/api/v1/tasks", json={"title": " "}, headers=owner())
    assert r.status_code == 400
    assert "title cannot be empty" in r.json()["error"]["message"]


def test_complete_and_uncomplete():
    headers = owner()
    task_id = client.post("/api/v1/tasks", json={"title": "Run"}, headers=headers).json()["id"]

    r = client.post(f"/api/v1/tasks/{task_id}/complete", headers=headers)
    assert r.status_code == 200
    assert r.json()["completed"] is True

    stats = client.get(f"/api/v1/tasks/{task_id}/stats", headers=headers).json()
    assert stats["total_completions"] == 1
    assert stats["is_completed_today"] is True

    day = client.get("/api/v1/completions", params={"date": today().isoformat()}, headers=headers).json()
    assert [c["original_task_id"] for c in day] == [task_id]

    r2 = client.delete(f"/api/v1/tasks/{task_id}/complete", headers=headers)
    assert r2.json()["completed"] is False
    assert client.get(f"/api/v1/tasks/{task_id}/stats", headers=headers).json()["total_completions"] == 0


def test_subtask_endpoints():
    headers = owner()
    task_id = client.post("/api/v1/tasks", json={"title": "Pack", "subtasks": ["Socks"]}, headers=headers).json()["id"]

    r = client.post(f"/api/v1/tasks/{task_id}/subtasks", json={"title": "Charger"}, headers=headers)
    assert r.status_code == 201
    subtask_id = r.json()["id"]

    assert client.post(f"/api/v1/subtasks/{subtask_id}/toggle", headers=headers).json()["completed"] is True
    assert client.patch(f"/api/v1/subtasks/{subtask_id}", json={"title": "Cable"}, headers=headers).json()["title"] == "Cable"

    listed = client.get(f"/api/v1/tasks/{task_id}/subtasks", headers=headers).json()
    assert [s["title"] for s in listed] == ["Socks", "Cable"]

    assert client.delete(f"/api/v1/subtasks/{subtask_id}", headers=headers).status_code == 204
    assert len(client.get(f"/api/v1/tasks/{task_id}/subtasks", headers=headers).json()) == 1


def test_template_crud_and_preview():
    headers = owner()
    r = client.post("/api/v1/templates", json={
        "title": "Gym", "pattern": "WEEKLY", "weekdays": [1, 3], "start_date": "2025-09-09",
    }, headers=headers)
    assert r.status_code == 201
    template = r.json()
    assert template["description"] == "Every week on Tue, Thu"

    preview = client.get(
        f"/api/v1/templates/{template['id']}/preview",
        params={"start": "2025-09-08", "end": "2025-09-14"},
        headers=headers,
    ).json()
    assert preview["dates"] == ["2025-09-09", "2025-09-11"]

    r2 = client.patch(f"/api/v1/templates/{template['id']}", json={"active": False}, headers=headers)
    assert r2.json()["active"] is False

    assert client.delete(f"/api/v1/templates/{template['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/v1/templates/{template['id']}", headers=headers).status_code == 404


def test_invalid_template_is_400():
    r = client.post("/api/v1/templates", json={"title": "Gym", "pattern": "WEEKLY", "weekdays": []}, headers=owner())
    assert r.status_code == 400
    body = r.json()["error"]
    assert body["message"].startswith("Invalid WEEKLY template")
    assert body["details"]["pattern"] == "WEEKLY"


def test_generate_is_idempotent():
    headers = owner()
    client.post("/api/v1/templates", json={
        "title": "Stretch", "pattern": "DAILY", "start_date": (today() - timedelta(days=10)).isoformat(),
    }, headers=headers)

    first = client.post("/api/v1/engine/generate", headers=headers).json()
    assert first["created"] == 1
    assert first["last_task_generation"] == today().isoformat()

    second = client.post("/api/v1/engine/generate", headers=headers).json()
    assert second["created"] == 0

    ranged = client.post("/api/v1/engine/generate", json={
        "from_date": (today() - timedelta(days=2)).isoformat(),
        "to_date": today().isoformat(),
    }, headers=headers).json()
    assert ranged["created"] == 2
    assert ranged["skipped"] == 1

    metadata = client.get("/api/v1/engine/metadata", headers=headers).json()
    assert metadata["last_task_generation"] == today().isoformat()


def test_generate_needs_both_bounds():
    r = client.post("/api/v1/engine/generate", json={"from_date": "2025-09-01"}, headers=owner())
    assert r.status_code == 400


def test_rollover_endpoints():
    headers = owner()
    yesterday = (today() - timedelta(days=1)).isoformat()
    task_id = client.post("/api/v1/tasks", json={"title": "Overdue", "due_date": yesterday}, headers=headers).json()["id"]

    candidates = client.get("/api/v1/engine/rollover", headers=headers).json()
    assert [t["id"] for t in candidates["single"]] == [task_id]
    assert candidates["summary"] == "Incomplete: 1 single"

    result = client.post("/api/v1/engine/rollover", json={"task_ids": [task_id]}, headers=headers).json()
    assert result["resolved_task_ids"] == [task_id]
    assert len(result["created_task_ids"]) == 1

    again = client.post("/api/v1/engine/rollover", headers=headers).json()
    assert again["created_task_ids"] == []


def test_shopping_carryover_on_complete():
    headers = owner()
    task = client.post("/api/v1/tasks", json={
        "title": "Groceries", "category": "shopping", "subtasks": ["Milk", "Eggs"],
    }, headers=headers).json()
    client.post(f"/api/v1/subtasks/{task['subtasks'][0]['id']}/toggle", headers=headers)

    client.post(f"/api/v1/tasks/{task['id']}/complete", headers=headers)

    pending = client.get("/api/v1/tasks", params={"category": "shopping", "completed": False}, headers=headers).json()
    assert len(pending) == 1
    assert [s["title"] for s in pending[0]["subtasks"]] == ["Eggs"]
    assert pending[0]["due_date"] is None

    run = client.post("/api/v1/engine/shopping/carryover", headers=headers).json()
    assert run["created_task_ids"] == []


def test_maintenance_and_expire():
    headers = owner()
    client.post("/api/v1/templates", json={
        "title": "Stretch", "pattern": "DAILY", "start_date": (today() - timedelta(days=10)).isoformat(),
    }, headers=headers)
    client.post("/api/v1/engine/generate", json={
        "from_date": (today() - timedelta(days=5)).isoformat(),
        "to_date": (today() - timedelta(days=1)).isoformat(),
    }, headers=headers)

    result = client.post("/api/v1/engine/maintenance", headers=headers).json()
    assert result["generation"]["created"] == 1
    assert result["expiry"]["deleted"]["DAILY"] == 2

    assert client.post("/api/v1/engine/expire", headers=headers).json()["total"] == 0


def test_period_stats():
    headers = owner()
    task_id = client.post("/api/v1/tasks", json={"title": "Read"}, headers=headers).json()["id"]
    client.post(f"/api/v1/tasks/{task_id}/complete", headers=headers)

    r = client.get("/api/v1/completions/period", params={
        "start": (today() - timedelta(days=6)).isoformat(),
        "end": today().isoformat(),
    }, headers=headers)
    assert r.status_code == 200
    assert r.json()["total_completions"] == 1
    assert r.json()["task_completions"][task_id]["count"] == 1
