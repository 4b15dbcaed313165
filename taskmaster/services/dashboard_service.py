"""
Team dashboard - 상태별 / 담당자별 진행 현황 집계 (매니저 전용, 권한 검사는 라우터에서)
"""
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.models.enums import TaskStatus
from taskmaster.repositories.task_repository import TaskRepository
from taskmaster.repositories.user_repository import UserRepository
from taskmaster.schemas.dashboard import AssigneeWorkload, TeamProgressResponse
from taskmaster.services.query_service import TaskQuery, build_conditions


def _empty_counts() -> dict:
    return {status.value: 0 for status in TaskStatus}


class DashboardService:
    def __init__(self, session: AsyncSession):
        self.tasks = TaskRepository(session)
        self.users = UserRepository(session)

    async def progress(self, query: TaskQuery) -> TeamProgressResponse:
        conditions = build_conditions(query)

        counts = _empty_counts()
        for status, count in (await self.tasks.count_by_status(conditions)).items():
            counts[TaskStatus(status).value] = count

        per_user: dict = {}
        for user_id, status, count in await self.tasks.count_by_assignee_status(conditions):
            per_user.setdefault(user_id, _empty_counts())[TaskStatus(status).value] = count

        names = {u.user_id: u.name for u in await self.users.get_many(per_user.keys())}
        assignees = [
            AssigneeWorkload(user_id=user_id, name=names.get(user_id), counts=user_counts)
            for user_id, user_counts in per_user.items()
        ]
        return TeamProgressResponse(total=sum(counts.values()), counts=counts, assignees=assignees)
