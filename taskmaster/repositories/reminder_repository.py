from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskmaster.models.task import TaskReminder


class ReminderRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_due(self, now: datetime, limit: int = 100) -> List[TaskReminder]:
        """아직 발송되지 않았고 remind_at 이 지난 리마인더"""
        result = await self.session.execute(
            select(TaskReminder)
            .where(TaskReminder.fired_at.is_(None))
            .where(TaskReminder.remind_at <= now)
            .order_by(TaskReminder.remind_at, TaskReminder.reminder_id)
            .limit(limit)
            .options(selectinload(TaskReminder.task))
            .with_for_update(skip_locked=True)
        )
        return list(result.scalars().all())
