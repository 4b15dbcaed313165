from typing import List, Optional, Sequence

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.models.notification import Notification


class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_all(self, notifications: Sequence[Notification]) -> List[Notification]:
        self.session.add_all(notifications)
        await self.session.flush()
        return list(notifications)

    async def get(self, notification_id: int) -> Optional[Notification]:
        result = await self.session.execute(
            select(Notification)
            .where(Notification.notification_id == notification_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: int, unread_only: bool = False, limit: Optional[int] = None) -> List[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(desc(Notification.created_at), desc(Notification.notification_id))
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def mark_all_read(self, user_id: int) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
