"""
Query/Filter Engine

필터(차원 간 AND, 차원 내 OR) + 단일 필드 정렬 + 페이지네이션.
정렬 동률은 항상 task_id 오름차순으로 결정적으로 정리한다.
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy import case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.core.config import settings
from taskmaster.core.exceptions import ValidationError
from taskmaster.models.enums import PRIORITY_RANK, TaskPriority, TaskStatus
from taskmaster.models.task import Task, TaskAssignee, TaskTag
from taskmaster.repositories.task_repository import TaskRepository
from taskmaster.schemas.base import PaginationInfo
from taskmaster.utils.timezone import parse_bound

SORT_FIELDS = {
    "due_date": "due_date",
    "priority": "priority",
    "created_at": "created_at",
    "created_date": "created_at",
}


@dataclass
class TaskQuery:
    status: List[str] = field(default_factory=list)
    priority: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    assignee_ids: List[int] = field(default_factory=list)
    due_date_from: Optional[str] = None
    due_date_to: Optional[str] = None
    q: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = 1
    page_size: Optional[int] = None
    # 일반 사용자: 본인이 만들었거나 담당인 작업만
    visible_to_user_id: Optional[int] = None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_enum_list(enum_cls, values: List[str], name: str):
    try:
        return [enum_cls(v) for v in values]
    except ValueError:
        raise ValidationError(f"{name}: must be one of {[m.value for m in enum_cls]}")


def build_conditions(query: TaskQuery) -> list:
    conditions = []

    if query.status:
        conditions.append(Task.status.in_(_parse_enum_list(TaskStatus, query.status, "status")))
    if query.priority:
        conditions.append(Task.priority.in_(_parse_enum_list(TaskPriority, query.priority, "priority")))
    if query.tags:
        conditions.append(Task.task_id.in_(select(TaskTag.task_id).where(TaskTag.tag.in_(query.tags))))
    if query.assignee_ids:
        conditions.append(
            Task.task_id.in_(select(TaskAssignee.task_id).where(TaskAssignee.user_id.in_(query.assignee_ids)))
        )

    try:
        due_from = parse_bound(query.due_date_from)
        due_to = parse_bound(query.due_date_to, upper=True)
    except ValueError:
        raise ValidationError("due_date_from/due_date_to: must be ISO 8601 dates")
    if due_from is not None:
        conditions.append(Task.due_date >= due_from)
    if due_to is not None:
        conditions.append(Task.due_date <= due_to)

    if query.q and query.q.strip():
        pattern = f"%{_escape_like(query.q.strip())}%"
        conditions.append(
            or_(
                Task.title.ilike(pattern, escape="\\"),
                Task.description.ilike(pattern, escape="\\"),
            )
        )

    if query.visible_to_user_id is not None:
        uid = query.visible_to_user_id
        conditions.append(
            or_(
                Task.creator_user_id == uid,
                Task.task_id.in_(select(TaskAssignee.task_id).where(TaskAssignee.user_id == uid)),
            )
        )
    return conditions


def build_order_by(query: TaskQuery) -> list:
    sort_field = SORT_FIELDS.get(query.sort_by)
    if sort_field is None:
        raise ValidationError(f"sort_by: must be one of {sorted(SORT_FIELDS)}")
    order = (query.sort_order or "asc").lower()
    if order not in ("asc", "desc"):
        raise ValidationError("sort_order: must be 'asc' or 'desc'")

    def directed(column):
        return column.desc() if order == "desc" else column.asc()

    if sort_field == "due_date":
        # due_date 없는 작업은 방향과 무관하게 마지막
        order_by = [Task.due_date.is_(None), directed(Task.due_date)]
    elif sort_field == "priority":
        ranks = {priority.value: rank for priority, rank in PRIORITY_RANK.items()}
        order_by = [directed(case(ranks, value=Task.priority))]
    else:
        order_by = [directed(Task.created_at)]
    order_by.append(Task.task_id.asc())
    return order_by


class QueryService:
    def __init__(self, session: AsyncSession):
        self.tasks = TaskRepository(session)

    async def list_tasks(self, query: TaskQuery) -> Tuple[List[Task], PaginationInfo]:
        page_size = query.page_size if query.page_size is not None else settings.DEFAULT_PAGE_SIZE
        if page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
            raise ValidationError(f"page_size: must be between 1 and {settings.MAX_PAGE_SIZE}")
        if query.page < 1:
            raise ValidationError("page: must be >= 1")

        conditions = build_conditions(query)
        order_by = build_order_by(query)

        total = await self.tasks.count(conditions)
        items = await self.tasks.search(conditions, order_by, offset=(query.page - 1) * page_size, limit=page_size)
        pagination = PaginationInfo(
            current_page=query.page,
            page_size=page_size,
            total_items=total,
            total_pages=max(1, math.ceil(total / page_size)),
        )
        return items, pagination
