# tests/test_comment_service.py

from __future__ import annotations

import pytest
from sqlalchemy import select

from taskmaster.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from taskmaster.models import Notification
from taskmaster.models.enums import NotificationType
from taskmaster.schemas.task import TaskCreate

from .fakes import FakeConnection


@pytest.fixture()
async def shared_task(task_service, users):
    """Created by alice, assigned to bob and carol."""
    return await task_service.create_task(
        users.alice.user_id,
        TaskCreate(title="Review PR", assignee_ids=[users.bob.user_id, users.carol.user_id]),
    )


async def comment_notifications(session) -> list[Notification]:
    result = await session.execute(
        select(Notification).where(Notification.type == NotificationType.NEW_COMMENT)
    )
    return list(result.scalars().all())


async def test_comment_notifies_creator_and_other_assignees(comment_service, session, shared_task, users) -> None:
    comment = await comment_service.add_comment(shared_task.task_id, users.bob.user_id, "LGTM")

    notified = await comment_notifications(session)
    assert sorted(n.user_id for n in notified) == sorted([users.alice.user_id, users.carol.user_id])
    assert all(n.reference_id == comment.comment_id for n in notified)
    assert notified[0].message == 'New comment on task "Review PR".'


async def test_comment_response_fields(comment_service, shared_task, users) -> None:
    comment = await comment_service.add_comment(shared_task.task_id, users.bob.user_id, "  spaced  ")

    assert comment.body == "spaced"
    assert comment.author.name == "Bob Smith"
    assert comment.updated_at is None
    assert comment.parent_comment_id is None


async def test_comment_requires_body(comment_service, shared_task, users) -> None:
    with pytest.raises(ValidationError):
        await comment_service.add_comment(shared_task.task_id, users.bob.user_id, "   ")


async def test_comment_on_missing_task(comment_service, users) -> None:
    with pytest.raises(NotFoundError):
        await comment_service.add_comment(9999, users.bob.user_id, "hello")


async def test_reply_parent_must_be_on_same_task(comment_service, task_service, shared_task, users) -> None:
    other = await task_service.create_task(users.alice.user_id, TaskCreate(title="Other"))
    foreign = await comment_service.add_comment(other.task_id, users.alice.user_id, "elsewhere")

    with pytest.raises(ValidationError):
        await comment_service.add_comment(
            shared_task.task_id, users.bob.user_id, "reply", parent_comment_id=foreign.comment_id
        )
    with pytest.raises(ValidationError):
        await comment_service.add_comment(shared_task.task_id, users.bob.user_id, "reply", parent_comment_id=555)


async def test_deleting_parent_orphans_replies(comment_service, shared_task, users) -> None:
    task_id = shared_task.task_id
    parent = await comment_service.add_comment(task_id, users.bob.user_id, "parent")
    first = await comment_service.add_comment(task_id, users.carol.user_id, "r1", parent_comment_id=parent.comment_id)
    second = await comment_service.add_comment(task_id, users.alice.user_id, "r2", parent_comment_id=parent.comment_id)

    await comment_service.delete_comment(parent.comment_id, users.bob)

    remaining = await comment_service.list_comments(task_id)
    assert [c.comment_id for c in remaining] == [first.comment_id, second.comment_id]
    assert all(c.parent_comment_id is None for c in remaining)


async def test_only_author_or_manager_can_edit(comment_service, shared_task, users) -> None:
    comment = await comment_service.add_comment(shared_task.task_id, users.bob.user_id, "draft")

    with pytest.raises(ForbiddenError):
        await comment_service.edit_comment(comment.comment_id, users.carol, "hijack")

    edited = await comment_service.edit_comment(comment.comment_id, users.bob, "final")
    assert edited.body == "final"
    assert edited.updated_at is not None
    first_edit = edited.updated_at

    moderated = await comment_service.edit_comment(comment.comment_id, users.alice, "moderated")
    assert moderated.body == "moderated"
    assert moderated.updated_at > first_edit


async def test_edit_sends_no_notification(comment_service, session, shared_task, users) -> None:
    comment = await comment_service.add_comment(shared_task.task_id, users.bob.user_id, "v1")
    before = len(await comment_notifications(session))

    await comment_service.edit_comment(comment.comment_id, users.bob, "v2")

    assert len(await comment_notifications(session)) == before


async def test_only_author_or_manager_can_delete(comment_service, shared_task, users) -> None:
    comment = await comment_service.add_comment(shared_task.task_id, users.bob.user_id, "mine")

    with pytest.raises(ForbiddenError):
        await comment_service.delete_comment(comment.comment_id, users.dave)

    await comment_service.delete_comment(comment.comment_id, users.alice)
    with pytest.raises(NotFoundError):
        await comment_service.get_comment(comment.comment_id)


async def test_edit_missing_comment(comment_service, users) -> None:
    with pytest.raises(NotFoundError):
        await comment_service.edit_comment(31337, users.alice, "ghost")


async def test_comment_events_reach_task_room(comment_service, registry, shared_task, users) -> None:
    watcher = FakeConnection("watcher")
    await registry.connect(users.dave.user_id, watcher)
    await registry.subscribe_task(watcher, shared_task.task_id)

    comment = await comment_service.add_comment(shared_task.task_id, users.bob.user_id, "hi")
    await comment_service.edit_comment(comment.comment_id, users.bob, "hi!")
    await comment_service.delete_comment(comment.comment_id, users.bob)

    assert watcher.events() == ["comment_added", "comment_updated", "comment_deleted"]
    assert watcher.sent[0]["payload"]["author_name"] == "Bob Smith"
    assert watcher.sent[2]["payload"] == {"comment_id": comment.comment_id, "task_id": shared_task.task_id}
