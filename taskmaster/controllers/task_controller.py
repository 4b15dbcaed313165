from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from taskmaster.core.deps import get_current_user, get_query_service, get_task_service
from taskmaster.models.user import User
from taskmaster.schemas.task import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    TaskCreate,
    TaskDetailResponse,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
    to_task_detail_response,
    to_task_response,
)
from taskmaster.services import access_policy
from taskmaster.services.query_service import QueryService, TaskQuery
from taskmaster.services.task_service import TaskService
from taskmaster.utils.query_params import split_csv, split_csv_ints

router = APIRouter()


# =========================================================
# 목록 조회 (필터/정렬/페이지네이션)
# =========================================================
@router.get("", response_model=TaskListResponse)
async def list_tasks(
    status_: Optional[List[str]] = Query(None, alias="status"),
    priority: Optional[List[str]] = Query(None),
    tags: Optional[List[str]] = Query(None),
    assignee_ids: Optional[List[str]] = Query(None),
    due_date_from: Optional[str] = None,
    due_date_to: Optional[str] = None,
    q: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = 1,
    page_size: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    query_service: QueryService = Depends(get_query_service),
):
    query = TaskQuery(
        status=split_csv(status_),
        priority=split_csv(priority),
        tags=split_csv(tags),
        assignee_ids=split_csv_ints(assignee_ids, "assignee_ids"),
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        q=q,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
        visible_to_user_id=None if current_user.is_manager else current_user.user_id,
    )
    tasks, pagination = await query_service.list_tasks(query)
    return TaskListResponse(tasks=[to_task_response(t) for t in tasks], pagination=pagination)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    task = await service.create_task(current_user.user_id, payload)
    return to_task_response(task)


# =========================================================
# 일괄 삭제 ("/{task_id}" 보다 먼저 등록해야 함)
# =========================================================
async def _bulk_delete(payload: BulkDeleteRequest, current_user: User, service: TaskService) -> BulkDeleteResponse:
    # 권한 없는 작업이 섞여 있으면 아무것도 지우지 않음
    for task_id in set(payload.task_ids):
        task = await service.tasks.get(task_id)
        if task is not None:
            access_policy.ensure_can_delete(current_user, task)
    count, not_found = await service.bulk_delete(payload.task_ids)
    return BulkDeleteResponse(count=count, not_found=not_found)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_tasks(
    payload: BulkDeleteRequest,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    return await _bulk_delete(payload, current_user, service)


@router.delete("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_tasks_delete(
    payload: BulkDeleteRequest,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """DELETE + body 를 쓰는 클라이언트 호환용"""
    return await _bulk_delete(payload, current_user, service)


# =========================================================
# 단건
# =========================================================
@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    task = await service.get_task(task_id, with_comments=True)
    access_policy.ensure_can_view(current_user, task)
    return to_task_detail_response(task)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    task = await service.get_task(task_id)
    access_policy.ensure_can_edit(current_user, task)
    updated = await service.update_task(task_id, current_user.user_id, payload)
    return to_task_response(updated)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    task = await service.get_task(task_id)
    access_policy.ensure_can_delete(current_user, task)
    await service.delete_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
