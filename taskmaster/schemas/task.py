from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field

from taskmaster.models.enums import ReminderPreset, TaskPriority, TaskStatus
from taskmaster.models.task import Task
from taskmaster.schemas.base import PaginationInfo
from taskmaster.schemas.comment import CommentResponse, to_comment_response


# --- Request Schemas ---
class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    # 잘못된 값은 서비스에서 Medium 으로 보정
    priority: Optional[str] = None
    tags: Optional[List[str]] = None
    assignee_ids: Optional[List[int]] = Field(
        default=None, validation_alias=AliasChoices("assignee_ids", "assignees")
    )
    reminder_preset: Optional[str] = None


class TaskUpdate(BaseModel):
    """부분 수정: 요청에 포함된 필드만 반영 (model_dump(exclude_unset=True))"""
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[List[str]] = None
    assignee_ids: Optional[List[int]] = Field(
        default=None, validation_alias=AliasChoices("assignee_ids", "assignees")
    )
    reminder_preset: Optional[str] = None


class BulkDeleteRequest(BaseModel):
    task_ids: List[int]


# --- Response Schemas ---
class AssigneeResponse(BaseModel):
    user_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    assigned_at: datetime


class ReminderResponse(BaseModel):
    reminder_id: int
    remind_at: datetime
    preset: ReminderPreset
    fired_at: Optional[datetime] = None


class TaskResponse(BaseModel):
    task_id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TaskPriority
    status: TaskStatus
    tags: List[str] = []
    creator_user_id: int
    created_at: datetime
    updated_at: datetime
    assignees: List[AssigneeResponse] = []
    reminders: List[ReminderResponse] = []


class TaskDetailResponse(TaskResponse):
    comments: List[CommentResponse] = []


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]
    pagination: PaginationInfo


class BulkDeleteResponse(BaseModel):
    count: int
    not_found: List[int] = []


def to_task_response(task: Task) -> TaskResponse:
    """assignments(+user), tag_rows, reminders 가 로드된 Task 를 응답으로 변환"""
    return TaskResponse(
        task_id=task.task_id,
        title=task.title,
        description=task.description,
        due_date=task.due_date,
        priority=task.priority,
        status=task.status,
        tags=task.tags,
        creator_user_id=task.creator_user_id,
        created_at=task.created_at,
        updated_at=task.updated_at,
        assignees=[
            AssigneeResponse(
                user_id=a.user_id,
                name=a.user.name if a.user else None,
                email=a.user.email if a.user else None,
                assigned_at=a.assigned_at,
            )
            for a in task.assignments
        ],
        reminders=[
            ReminderResponse(
                reminder_id=r.reminder_id,
                remind_at=r.remind_at,
                preset=r.preset,
                fired_at=r.fired_at,
            )
            for r in task.reminders
        ],
    )


def to_task_detail_response(task: Task) -> TaskDetailResponse:
    """TaskRepository.get(with_comments=True) 로 로드된 Task 전용"""
    return TaskDetailResponse(
        **to_task_response(task).model_dump(),
        comments=[to_comment_response(c) for c in task.comments],
    )
