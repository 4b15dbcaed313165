# tests/test_api.py

from __future__ import annotations

from sqlalchemy import func, select

from taskmaster.models import Comment, TaskAssignee, TaskReminder, TaskTag

from .conftest import auth_header


async def create(client, user, **body) -> dict:
    body.setdefault("title", "API task")
    response = await client.post("/tasks", json=body, headers=auth_header(user))
    assert response.status_code == 201, response.text
    return response.json()


async def test_health_and_root_are_public(client) -> None:
    assert (await client.get("/health")).json()["status"] == "healthy"
    assert (await client.get("/")).status_code == 200


async def test_requests_without_token_are_unauthorized(client) -> None:
    response = await client.get("/tasks")

    assert response.status_code == 401
    assert response.json() == {"success": False, "code": "AUTH_401", "error": "Missing bearer token", "data": None}


async def test_create_ignores_client_status(client, users) -> None:
    task = await create(client, users.bob, title="Ship release", status="Done", priority="High")

    assert task["status"] == "To Do"
    assert task["priority"] == "High"
    assert task["creator_user_id"] == users.bob.user_id


async def test_request_validation_error_shape(client, users) -> None:
    response = await client.post("/tasks", json={"description": "no title"}, headers=auth_header(users.bob))

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "TSK_400"
    assert body["error"].startswith("title: Field required")
    assert body["data"] is None


async def test_missing_task_is_404(client, users) -> None:
    response = await client.get("/tasks/9999", headers=auth_header(users.alice))

    assert response.status_code == 404
    assert response.json()["code"] == "TSK_404"


async def test_regular_user_cannot_see_unrelated_task(client, users) -> None:
    task = await create(client, users.alice, title="Secret")

    response = await client.get(f"/tasks/{task['task_id']}", headers=auth_header(users.dave))
    assert response.status_code == 403
    assert response.json()["code"] == "TSK_403"

    listed = await client.get("/tasks", headers=auth_header(users.dave))
    assert listed.json()["tasks"] == []


async def test_assignee_can_update_but_not_delete(client, users) -> None:
    task = await create(client, users.alice, assignee_ids=[users.bob.user_id])
    url = f"/tasks/{task['task_id']}"

    updated = await client.patch(url, json={"status": "In Progress"}, headers=auth_header(users.bob))
    assert updated.status_code == 200
    assert updated.json()["status"] == "In Progress"

    denied = await client.delete(url, headers=auth_header(users.bob))
    assert denied.status_code == 403


async def test_list_accepts_csv_and_repeated_params(client, users) -> None:
    high = await create(client, users.alice, title="h", priority="High")
    low = await create(client, users.alice, title="l", priority="Low")
    await create(client, users.alice, title="m", priority="Medium")

    response = await client.get(
        "/tasks?priority=High,Low&sort_by=priority&sort_order=desc&page_size=10",
        headers=auth_header(users.alice),
    )
    assert response.status_code == 200
    body = response.json()
    assert [t["task_id"] for t in body["tasks"]] == [high["task_id"], low["task_id"]]
    assert body["pagination"] == {"current_page": 1, "page_size": 10, "total_items": 2, "total_pages": 1}

    repeated = await client.get("/tasks?priority=High&priority=Low", headers=auth_header(users.alice))
    assert repeated.json()["pagination"]["total_items"] == 2

    bad = await client.get("/tasks?sort_by=title", headers=auth_header(users.alice))
    assert bad.status_code == 400


async def test_delete_keeps_notifications_as_history(client, session, users) -> None:
    task = await create(
        client,
        users.alice,
        title="Doomed",
        assignee_ids=[users.bob.user_id],
        tags=["ops"],
        due_date="2030-01-10T17:00:00",
        reminder_preset="1_day_before",
    )
    task_id = task["task_id"]
    comment = await client.post(
        f"/tasks/{task_id}/comments", json={"body": "before it goes"}, headers=auth_header(users.bob)
    )
    assert comment.status_code == 201
    counts = {}
    for model in (Comment, TaskAssignee, TaskTag, TaskReminder):
        counts[model] = await session.scalar(select(func.count()).select_from(model).where(model.task_id == task_id))
    assert all(counts[model] == 1 for model in counts), counts

    deleted = await client.delete(f"/tasks/{task_id}", headers=auth_header(users.alice))
    assert deleted.status_code == 204

    assert (await client.get(f"/tasks/{task_id}", headers=auth_header(users.alice))).status_code == 404
    assert (await client.get(f"/tasks/{task_id}/comments", headers=auth_header(users.alice))).status_code == 404
    for model in counts:
        remaining = await session.scalar(select(func.count()).select_from(model).where(model.task_id == task_id))
        assert remaining == 0, model.__name__

    bob_notes = (await client.get("/notifications", headers=auth_header(users.bob))).json()
    assert [(n["type"], n["reference_id"]) for n in bob_notes] == [("task_assignment", task_id)]
    alice_notes = (await client.get("/notifications", headers=auth_header(users.alice))).json()
    assert [n["type"] for n in alice_notes] == ["new_comment"]


async def test_bulk_delete_post_and_delete(client, users) -> None:
    first = await create(client, users.alice, title="one")
    second = await create(client, users.alice, title="two")

    response = await client.post(
        "/tasks/bulk-delete", json={"task_ids": [first["task_id"], 777]}, headers=auth_header(users.alice)
    )
    assert response.status_code == 200
    assert response.json() == {"count": 1, "not_found": [777]}

    response = await client.request(
        "DELETE", "/tasks/bulk-delete", json={"task_ids": [second["task_id"]]}, headers=auth_header(users.alice)
    )
    assert response.json() == {"count": 1, "not_found": []}

    empty = await client.post("/tasks/bulk-delete", json={"task_ids": []}, headers=auth_header(users.alice))
    assert empty.status_code == 400


async def test_bulk_delete_requires_ownership(client, users) -> None:
    task = await create(client, users.alice, title="alice's", assignee_ids=[users.bob.user_id])

    response = await client.post(
        "/tasks/bulk-delete", json={"task_ids": [task["task_id"]]}, headers=auth_header(users.bob)
    )

    assert response.status_code == 403
    assert (await client.get(f"/tasks/{task['task_id']}", headers=auth_header(users.alice))).status_code == 200


async def test_task_detail_includes_comments(client, users) -> None:
    task = await create(client, users.alice, title="Chatty", assignee_ids=[users.bob.user_id])
    url = f"/tasks/{task['task_id']}/comments"
    parent = (await client.post(url, json={"body": "root"}, headers=auth_header(users.bob))).json()
    await client.post(
        url, json={"body": "reply", "parent_comment_id": parent["comment_id"]}, headers=auth_header(users.alice)
    )

    detail = (await client.get(f"/tasks/{task['task_id']}", headers=auth_header(users.bob))).json()

    assert [c["body"] for c in detail["comments"]] == ["root", "reply"]
    assert detail["comments"][1]["parent_comment_id"] == parent["comment_id"]
    assert detail["assignees"][0]["name"] == "Bob Smith"


async def test_comment_edit_and_delete_routes(client, users) -> None:
    task = await create(client, users.alice, assignee_ids=[users.bob.user_id])
    comment = (
        await client.post(f"/tasks/{task['task_id']}/comments", json={"body": "typo"}, headers=auth_header(users.bob))
    ).json()
    url = f"/comments/{comment['comment_id']}"

    assert (await client.patch(url, json={"body": "x"}, headers=auth_header(users.carol))).status_code == 403
    edited = await client.patch(url, json={"body": "fixed"}, headers=auth_header(users.bob))
    assert edited.json()["body"] == "fixed"
    assert edited.json()["updated_at"] is not None

    assert (await client.delete(url, headers=auth_header(users.bob))).status_code == 204
    assert (await client.delete(url, headers=auth_header(users.bob))).status_code == 404


async def test_notification_read_routes(client, users) -> None:
    for title in ("a", "b"):
        await create(client, users.alice, title=title, assignee_ids=[users.bob.user_id])
    bob = auth_header(users.bob)
    notes = (await client.get("/notifications", headers=bob)).json()

    read = await client.patch(f"/notifications/{notes[0]['notification_id']}/read", headers=bob)
    assert read.json()["is_read"] is True
    again = await client.patch(f"/notifications/{notes[0]['notification_id']}/read", headers=bob)
    assert again.status_code == 200

    foreign = await client.patch(f"/notifications/{notes[1]['notification_id']}/read", headers=auth_header(users.carol))
    assert foreign.status_code == 404

    assert (await client.patch("/notifications/mark_all_read", headers=bob)).json() == {"count": 1}
    assert (await client.get("/notifications?unread_only=true", headers=bob)).json() == []


async def test_team_progress_is_manager_only(client, users) -> None:
    await create(client, users.alice, title="a", assignee_ids=[users.bob.user_id])
    done = await create(client, users.alice, title="b", assignee_ids=[users.bob.user_id, users.carol.user_id])
    await client.patch(f"/tasks/{done['task_id']}", json={"status": "Done"}, headers=auth_header(users.alice))

    assert (await client.get("/team/progress", headers=auth_header(users.bob))).status_code == 403

    progress = (await client.get("/team/progress", headers=auth_header(users.alice))).json()
    assert progress["total"] == 2
    assert progress["counts"] == {"To Do": 1, "In Progress": 0, "Done": 1}
    by_user = {a["user_id"]: a for a in progress["assignees"]}
    assert by_user[users.bob.user_id]["counts"] == {"To Do": 1, "In Progress": 0, "Done": 1}
    assert by_user[users.carol.user_id]["name"] == "Carol Williams"


async def test_profile_update_and_conflict(client, users) -> None:
    me = (await client.get("/users/me", headers=auth_header(users.bob))).json()
    assert me["notification_settings"] == {"in_app": True, "email": False}

    updated = await client.patch(
        "/users/me",
        json={"name": "Robert", "notification_settings": {"in_app": False, "email": True}},
        headers=auth_header(users.bob),
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Robert"
    assert updated.json()["notification_settings"] == {"in_app": False, "email": True}

    taken = await client.patch("/users/me", json={"email": "alice@example.com"}, headers=auth_header(users.bob))
    assert taken.status_code == 409
    assert taken.json()["code"] == "TSK_409"

    bad_settings = await client.patch(
        "/users/me", json={"notification_settings": {"in_app": "yes"}}, headers=auth_header(users.bob)
    )
    assert bad_settings.status_code == 400

    directory = (await client.get("/users", headers=auth_header(users.bob))).json()
    assert {u["email"] for u in directory} == {
        "alice@example.com", "bob@example.com", "carol@example.com", "dave@example.com"
    }
