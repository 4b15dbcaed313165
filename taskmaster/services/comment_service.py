"""
Comment Engine

작업 댓글 추가/수정/삭제. 답글은 같은 작업 안의 댓글만 부모로 가질 수 있다.
"""
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.core.exceptions import ForbiddenError, InternalError, NotFoundError, ValidationError
from taskmaster.models.comment import Comment
from taskmaster.models.enums import NotificationType, RealtimeEvent
from taskmaster.models.user import User
from taskmaster.repositories.comment_repository import CommentRepository
from taskmaster.repositories.task_repository import TaskRepository
from taskmaster.schemas.comment import to_comment_response
from taskmaster.services.notification_service import DomainEvent, NotificationService
from taskmaster.utils.timezone import next_timestamp, utcnow

logger = logging.getLogger(__name__)


def clean_body(body: Optional[str]) -> str:
    if body is None or not body.strip():
        raise ValidationError("body: must not be empty")
    return body.strip()


def ensure_can_modify(actor: User, comment: Comment) -> None:
    if not (actor.is_manager or comment.author_user_id == actor.user_id):
        raise ForbiddenError("Only the author or a manager can modify this comment")


class CommentService:
    def __init__(self, session: AsyncSession, notifier: NotificationService):
        self.session = session
        self.notifier = notifier
        self.registry = notifier.registry
        self.comments = CommentRepository(session)
        self.tasks = TaskRepository(session)

    async def get_comment(self, comment_id: int) -> Comment:
        comment = await self.comments.get(comment_id)
        if comment is None:
            raise NotFoundError(f"Comment {comment_id} not found")
        return comment

    async def list_comments(self, task_id: int) -> List[Comment]:
        if not await self.tasks.exists(task_id):
            raise NotFoundError(f"Task {task_id} not found")
        return await self.comments.list_for_task(task_id)

    async def add_comment(
        self, task_id: int, author_id: int, body: Optional[str], parent_comment_id: Optional[int] = None
    ) -> Comment:
        task = await self.tasks.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        text = clean_body(body)

        if parent_comment_id is not None:
            parent = await self.comments.get(parent_comment_id)
            if parent is None or parent.task_id != task_id:
                raise ValidationError("parent_comment_id: must reference a comment on the same task")

        comment = Comment(
            task_id=task_id,
            author_user_id=author_id,
            body=text,
            created_at=utcnow(),
            parent_comment_id=parent_comment_id,
        )
        try:
            await self.comments.add(comment)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Comment create failed: task_id={task_id}, author_id={author_id}, error={e}")
            raise InternalError("Failed to add comment")

        comment_id = comment.comment_id
        logger.info(f"Comment added: comment_id={comment_id}, task_id={task_id}, author_id={author_id}")

        recipients = [task.creator_user_id] + [a.user_id for a in task.assignments]
        await self.notifier.publish(
            DomainEvent(
                NotificationType.NEW_COMMENT, task, actor_id=author_id, recipient_ids=recipients, comment=comment
            )
        )

        saved = await self.get_comment(comment_id)
        await self.registry.broadcast_task(
            task_id, RealtimeEvent.COMMENT_ADDED.value, to_comment_response(saved).model_dump(mode="json")
        )
        return saved

    async def edit_comment(self, comment_id: int, actor: User, body: Optional[str]) -> Comment:
        comment = await self.get_comment(comment_id)
        ensure_can_modify(actor, comment)
        text = clean_body(body)

        try:
            comment.body = text
            comment.updated_at = next_timestamp(comment.updated_at or comment.created_at)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Comment update failed: comment_id={comment_id}, error={e}")
            raise InternalError("Failed to update comment")

        logger.info(f"Comment edited: comment_id={comment_id}, actor_id={actor.user_id}")
        saved = await self.get_comment(comment_id)
        await self.registry.broadcast_task(
            saved.task_id, RealtimeEvent.COMMENT_UPDATED.value, to_comment_response(saved).model_dump(mode="json")
        )
        return saved

    async def delete_comment(self, comment_id: int, actor: User) -> None:
        comment = await self.get_comment(comment_id)
        ensure_can_modify(actor, comment)
        task_id = comment.task_id

        try:
            await self.comments.delete(comment)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Comment delete failed: comment_id={comment_id}, error={e}")
            raise InternalError("Failed to delete comment")

        logger.info(f"Comment deleted: comment_id={comment_id}, task_id={task_id}, actor_id={actor.user_id}")
        await self.registry.broadcast_task(
            task_id, RealtimeEvent.COMMENT_DELETED.value, {"comment_id": comment_id, "task_id": task_id}
        )
