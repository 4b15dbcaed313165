"""
REST 경계에서 적용하는 작업 접근 정책.
엔진(TaskService/CommentService)은 호출자가 이미 인가되었다고 가정한다.
"""
from taskmaster.core.exceptions import ForbiddenError
from taskmaster.models.task import Task
from taskmaster.models.user import User


def can_view(user: User, task: Task) -> bool:
    return user.is_manager or task.creator_user_id == user.user_id or user.user_id in task.assignee_ids


def ensure_can_view(user: User, task: Task) -> None:
    if not can_view(user, task):
        raise ForbiddenError("You do not have access to this task")


def ensure_can_edit(user: User, task: Task) -> None:
    if not can_view(user, task):
        raise ForbiddenError("Only the creator, assignees or a manager can edit this task")


def ensure_can_delete(user: User, task: Task) -> None:
    if not (user.is_manager or task.creator_user_id == user.user_id):
        raise ForbiddenError("Only the creator or a manager can delete this task")


def ensure_manager(user: User) -> None:
    if not user.is_manager:
        raise ForbiddenError("Manager role required")
