from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskmaster.models.comment import Comment


class CommentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, comment: Comment) -> Comment:
        self.session.add(comment)
        await self.session.flush()
        return comment

    async def get(self, comment_id: int) -> Optional[Comment]:
        result = await self.session.execute(
            select(Comment)
            .where(Comment.comment_id == comment_id)
            .options(selectinload(Comment.author))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_task(self, task_id: int) -> List[Comment]:
        result = await self.session.execute(
            select(Comment)
            .where(Comment.task_id == task_id)
            .order_by(Comment.created_at, Comment.comment_id)
            .options(selectinload(Comment.author))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_replies(self, comment_id: int) -> List[Comment]:
        result = await self.session.execute(
            select(Comment).where(Comment.parent_comment_id == comment_id)
        )
        return list(result.scalars().all())

    async def delete(self, comment: Comment) -> None:
        """답글은 삭제하지 않고 parent 참조만 NULL 로"""
        for reply in await self.list_replies(comment.comment_id):
            reply.parent_comment_id = None
        await self.session.flush()
        await self.session.delete(comment)
        await self.session.flush()
