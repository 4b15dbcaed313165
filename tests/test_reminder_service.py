# tests/test_reminder_service.py

from __future__ import annotations

from datetime import datetime, timedelta

from taskmaster.models.enums import NotificationType
from taskmaster.schemas.task import TaskCreate
from taskmaster.services.reminder_service import ReminderService


async def test_due_reminders_fire_once_to_creator(session, notifier, task_service, users) -> None:
    due = datetime(2030, 1, 10, 17, 0)
    task = await task_service.create_task(
        users.bob.user_id,
        TaskCreate(title="Demo day", due_date=due, reminder_preset="1_day_before", assignee_ids=[users.carol.user_id]),
    )
    service = ReminderService(session, notifier)

    assert await service.dispatch_due(due - timedelta(days=2)) == 0
    assert await service.dispatch_due(due - timedelta(hours=23)) == 1
    assert await service.dispatch_due(due) == 0

    [reminder] = [n for n in await notifier.list_for_user(users.bob.user_id) if n.type == NotificationType.REMINDER]
    assert reminder.message == 'Reminder: Task "Demo day" is due soon.'
    assert reminder.reference_id == task.task_id

    reloaded = await task_service.get_task(task.task_id)
    assert reloaded.reminders[0].fired_at == due - timedelta(hours=23)
