"""
Reminder dispatch

주기 호출(lifespan 폴링 루프 또는 외부 스케줄러)로 기한이 된 리마인더를 발송한다.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.models.enums import NotificationType
from taskmaster.repositories.reminder_repository import ReminderRepository
from taskmaster.services.notification_service import DomainEvent, NotificationService
from taskmaster.utils.timezone import utcnow

logger = logging.getLogger(__name__)


class ReminderService:
    def __init__(self, session: AsyncSession, notifier: NotificationService):
        self.session = session
        self.notifier = notifier
        self.reminders = ReminderRepository(session)

    async def dispatch_due(self, now: Optional[datetime] = None) -> int:
        """fired_at 을 먼저 커밋한 뒤 작성자에게 reminder 알림. 발송 건수 반환"""
        now = now or utcnow()
        due = await self.reminders.list_due(now)
        if not due:
            return 0

        events = []
        for reminder in due:
            reminder.fired_at = now
            task = reminder.task
            # 리마인더는 시스템 이벤트라 행위자 없음
            events.append(
                DomainEvent(NotificationType.REMINDER, task, actor_id=None, recipient_ids=[task.creator_user_id])
            )
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.exception(f"Reminder dispatch failed: count={len(due)}")
            raise

        for event in events:
            await self.notifier.publish(event)
        logger.info(f"Reminders dispatched: count={len(events)}")
        return len(events)
