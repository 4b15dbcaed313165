import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.core.database import get_db
from taskmaster.core.deps import get_current_user
from taskmaster.core.exceptions import ConflictError, ValidationError
from taskmaster.models.user import User
from taskmaster.repositories.user_repository import UserRepository
from taskmaster.schemas.user import UserDetailResponse, UserResponse, UserUpdate
from taskmaster.utils.timezone import next_timestamp

router = APIRouter()
logger = logging.getLogger("api_logger")


# =================================================================
# 1. 내 정보 조회
# =================================================================
@router.get("/me", response_model=UserDetailResponse)
async def get_user_me(current_user: User = Depends(get_current_user)):
    return UserDetailResponse.model_validate(current_user)


# =================================================================
# 2. 내 정보 수정 (name / email / notification_settings)
# =================================================================
@router.patch("/me", response_model=UserDetailResponse)
async def update_user_me(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    repo = UserRepository(db)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("name: must not be empty")
        current_user.name = name

    if "email" in changes:
        email = (changes["email"] or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationError("email: must be a valid email address")
        existing = await repo.get_by_email(email)
        if existing is not None and existing.user_id != current_user.user_id:
            raise ConflictError("Email already in use")
        current_user.email = email

    if changes.get("notification_settings") is not None:
        current_user.notification_settings = payload.notification_settings.model_dump()

    current_user.updated_at = next_timestamp(current_user.updated_at)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info(f"User profile updated: user_id={current_user.user_id}, fields={sorted(changes)}")
    return UserDetailResponse.model_validate(current_user)


# =================================================================
# 3. 사용자 목록 (담당자 선택용)
# =================================================================
@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    users = await UserRepository(db).list_users()
    return [UserResponse.model_validate(u) for u in users]
