"""
Notification Fan-out

작업/댓글 변경 이벤트로부터 수신자별 알림을 만들고 저장(커밋)한 뒤
각 수신자의 user 룸으로 push 한다. 저장이 push 보다 항상 먼저이며,
실패는 로그만 남기고 원래 변경 요청에는 영향을 주지 않는다.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.core.exceptions import NotFoundError
from taskmaster.models.comment import Comment
from taskmaster.models.enums import NotificationType, RealtimeEvent
from taskmaster.models.notification import CommentRef, Notification, NotificationRef, TaskRef
from taskmaster.models.task import Task
from taskmaster.repositories.notification_repository import NotificationRepository
from taskmaster.schemas.notification import NotificationResponse
from taskmaster.services.realtime import ConnectionRegistry

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATES = {
    NotificationType.TASK_ASSIGNMENT: 'You have been assigned to task "{title}".',
    NotificationType.TASK_UPDATE: 'Task "{title}" status changed to {status}.',
    NotificationType.NEW_COMMENT: 'New comment on task "{title}".',
    NotificationType.REMINDER: 'Reminder: Task "{title}" is due soon.',
}


@dataclass
class DomainEvent:
    type: NotificationType
    task: Task
    actor_id: Optional[int]
    recipient_ids: Iterable[int] = field(default_factory=list)
    comment: Optional[Comment] = None

    def recipients(self) -> List[int]:
        """중복 제거 + 행위자 제외 (입력 순서 유지)"""
        seen = []
        for user_id in self.recipient_ids:
            if user_id == self.actor_id or user_id in seen:
                continue
            seen.append(user_id)
        return seen

    def reference(self) -> NotificationRef:
        if self.type == NotificationType.NEW_COMMENT:
            return CommentRef(self.comment.comment_id)
        return TaskRef(self.task.task_id)

    def message(self) -> str:
        status = self.task.status.value if self.task.status is not None else ""
        return MESSAGE_TEMPLATES[self.type].format(title=self.task.title, status=status)


class NotificationService:
    def __init__(self, session: AsyncSession, registry: ConnectionRegistry):
        self.session = session
        self.registry = registry
        self.repo = NotificationRepository(session)

    async def publish(self, event: DomainEvent) -> List[Notification]:
        """이벤트 하나를 수신자별 알림으로 fan-out. 실패해도 예외를 올리지 않는다."""
        recipients = event.recipients()
        if not recipients:
            return []
        task_id = event.task.task_id

        try:
            ref = event.reference()
            message = event.message()
            notifications = await self.repo.add_all(
                [Notification.build(user_id, event.type, ref, message) for user_id in recipients]
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.exception(
                f"Notification persist failed: type={event.type.value}, task_id={task_id}, recipients={recipients}"
            )
            return []

        logger.info(f"Notifications created: type={event.type.value}, task_id={task_id}, recipients={recipients}")
        await self.push(notifications)
        return notifications

    async def push(self, notifications: Iterable[Notification]) -> None:
        for notification in notifications:
            try:
                payload = NotificationResponse.model_validate(notification).model_dump(mode="json")
                await self.registry.send_to_user(
                    notification.user_id, RealtimeEvent.NOTIFICATION_CREATED.value, payload
                )
            except Exception:
                # 누락된 push 는 클라이언트의 GET /notifications 로 복구
                logger.exception(f"Notification push failed: notification_id={notification.notification_id}")

    # =========================================================
    # 읽음 처리
    # =========================================================
    async def list_for_user(self, user_id: int, unread_only: bool = False, limit: Optional[int] = None) -> List[Notification]:
        return await self.repo.list_for_user(user_id, unread_only=unread_only, limit=limit)

    async def mark_read(self, notification_id: int, user_id: int) -> Notification:
        """이미 읽은 알림이면 아무것도 하지 않음"""
        notification = await self.repo.get(notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotFoundError("Notification not found")
        if not notification.is_read:
            notification.is_read = True
            await self.session.commit()
        return notification

    async def mark_all_read(self, user_id: int) -> int:
        count = await self.repo.mark_all_read(user_id)
        await self.session.commit()
        logger.info(f"Marked {count} notifications read for user_id={user_id}")
        return count
