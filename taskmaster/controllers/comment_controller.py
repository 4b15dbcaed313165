from typing import List

from fastapi import APIRouter, Depends, Response, status

from taskmaster.core.deps import get_comment_service, get_current_user
from taskmaster.models.user import User
from taskmaster.schemas.comment import CommentCreate, CommentResponse, CommentUpdate, to_comment_response
from taskmaster.services import access_policy
from taskmaster.services.comment_service import CommentService

router = APIRouter()


async def _ensure_task_visible(task_id: int, user: User, service: CommentService) -> None:
    task = await service.tasks.get(task_id)
    # 없는 작업은 서비스 쪽에서 NotFoundError
    if task is not None:
        access_policy.ensure_can_view(user, task)


@router.get("/tasks/{task_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    task_id: int,
    current_user: User = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    await _ensure_task_visible(task_id, current_user, service)
    comments = await service.list_comments(task_id)
    return [to_comment_response(c) for c in comments]


@router.post("/tasks/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: int,
    payload: CommentCreate,
    current_user: User = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    await _ensure_task_visible(task_id, current_user, service)
    comment = await service.add_comment(task_id, current_user.user_id, payload.body, payload.parent_comment_id)
    return to_comment_response(comment)


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: int,
    payload: CommentUpdate,
    current_user: User = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    comment = await service.edit_comment(comment_id, current_user, payload.body)
    return to_comment_response(comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    await service.delete_comment(comment_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
