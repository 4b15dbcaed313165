from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskmaster.models.comment import Comment
from taskmaster.models.enums import TaskStatus
from taskmaster.models.task import Task, TaskAssignee, TaskReminder, TaskTag


def _hydrated(with_comments: bool = False):
    options = [
        selectinload(Task.assignments).selectinload(TaskAssignee.user),
        selectinload(Task.tag_rows),
        selectinload(Task.reminders),
    ]
    if with_comments:
        options.append(selectinload(Task.comments).selectinload(Comment.author))
    return options


class TaskRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, task: Task) -> Task:
        self.session.add(task)
        await self.session.flush()
        return task

    async def get(self, task_id: int, with_comments: bool = False) -> Optional[Task]:
        """하위 컬렉션까지 로드된 Task (세션 캐시 무시하고 DB 값으로 갱신)"""
        result = await self.session.execute(
            select(Task)
            .where(Task.task_id == task_id)
            .options(*_hydrated(with_comments))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, task_id: int) -> Optional[Task]:
        """수정용 조회. MySQL 에서는 작업 행을 SELECT ... FOR UPDATE 로 잠가 동시 수정을 직렬화"""
        result = await self.session.execute(
            select(Task)
            .where(Task.task_id == task_id)
            .options(*_hydrated())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def exists(self, task_id: int) -> bool:
        result = await self.session.execute(select(Task.task_id).where(Task.task_id == task_id))
        return result.scalar_one_or_none() is not None

    async def delete_cascade(self, task_id: int) -> bool:
        """리마인더/담당자/태그/댓글 삭제 후 작업 삭제. 알림은 이력으로 남긴다."""
        if not await self.exists(task_id):
            return False
        await self.session.execute(delete(TaskReminder).where(TaskReminder.task_id == task_id))
        await self.session.execute(delete(TaskAssignee).where(TaskAssignee.task_id == task_id))
        await self.session.execute(delete(TaskTag).where(TaskTag.task_id == task_id))
        # 같은 작업 안의 답글 참조를 먼저 끊어 자기참조 FK 순서 문제 회피
        await self.session.execute(
            update(Comment)
            .where(Comment.task_id == task_id)
            .values(parent_comment_id=None)
        )
        await self.session.execute(delete(Comment).where(Comment.task_id == task_id))
        await self.session.execute(delete(Task).where(Task.task_id == task_id))
        return True

    # =========================================================
    # 목록 조회 (QueryService 가 조건/정렬을 만들어 넘김)
    # =========================================================
    async def count(self, conditions: Sequence) -> int:
        result = await self.session.execute(select(func.count(Task.task_id)).where(*conditions))
        return result.scalar() or 0

    async def search(self, conditions: Sequence, order_by: Sequence, offset: int, limit: int) -> List[Task]:
        result = await self.session.execute(
            select(Task)
            .where(*conditions)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
            .options(*_hydrated())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    # =========================================================
    # 대시보드 집계
    # =========================================================
    async def count_by_status(self, conditions: Sequence) -> Dict[TaskStatus, int]:
        result = await self.session.execute(
            select(Task.status, func.count(Task.task_id)).where(*conditions).group_by(Task.status)
        )
        return {status: count for status, count in result.all()}

    async def count_by_assignee_status(self, conditions: Sequence) -> List[Tuple[int, TaskStatus, int]]:
        result = await self.session.execute(
            select(TaskAssignee.user_id, Task.status, func.count(Task.task_id))
            .select_from(Task)
            .join(TaskAssignee, TaskAssignee.task_id == Task.task_id)
            .where(*conditions)
            .group_by(TaskAssignee.user_id, Task.status)
            .order_by(TaskAssignee.user_id)
        )
        return [(user_id, status, count) for user_id, status, count in result.all()]
