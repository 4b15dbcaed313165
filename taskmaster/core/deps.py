from typing import Optional
import logging

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.core.database import get_db
from taskmaster.core.exceptions import ForbiddenError, UnauthorizedError
from taskmaster.core.security import bearer_token, decode_access_token
from taskmaster.models.user import User
from taskmaster.repositories.user_repository import UserRepository
from taskmaster.services.comment_service import CommentService
from taskmaster.services.dashboard_service import DashboardService
from taskmaster.services.notification_service import NotificationService
from taskmaster.services.query_service import QueryService
from taskmaster.services.realtime import ConnectionRegistry
from taskmaster.services.task_service import TaskService

logger = logging.getLogger(__name__)


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Authorization: Bearer <JWT> 검증 후 User 행 반환"""
    claims = decode_access_token(bearer_token(authorization))
    user = await UserRepository(db).get(claims["user_id"])
    if user is None:
        logger.warning(f"Token for unknown user: user_id={claims['user_id']}")
        raise UnauthorizedError("User not found")
    return user


async def get_current_manager(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_manager:
        raise ForbiddenError("Manager role required")
    return current_user


def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


# =================================================================
# 서비스 팩토리 (요청 세션 + 공용 registry)
# =================================================================
def get_notification_service(
    db: AsyncSession = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_registry),
) -> NotificationService:
    return NotificationService(db, registry)


def get_task_service(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> TaskService:
    return TaskService(db, notifier)


def get_comment_service(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> CommentService:
    return CommentService(db, notifier)


def get_query_service(db: AsyncSession = Depends(get_db)) -> QueryService:
    return QueryService(db)


def get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(db)
