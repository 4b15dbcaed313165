from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from taskmaster.core.deps import get_current_manager, get_dashboard_service
from taskmaster.models.user import User
from taskmaster.schemas.dashboard import TeamProgressResponse
from taskmaster.services.dashboard_service import DashboardService
from taskmaster.services.query_service import TaskQuery
from taskmaster.utils.query_params import split_csv, split_csv_ints

router = APIRouter()


@router.get("/progress", response_model=TeamProgressResponse)
async def team_progress(
    status_: Optional[List[str]] = Query(None, alias="status"),
    priority: Optional[List[str]] = Query(None),
    tags: Optional[List[str]] = Query(None),
    assignee_ids: Optional[List[str]] = Query(None),
    due_date_from: Optional[str] = None,
    due_date_to: Optional[str] = None,
    q: Optional[str] = None,
    current_user: User = Depends(get_current_manager),
    service: DashboardService = Depends(get_dashboard_service),
):
    """팀 진행 현황 (매니저 전용)"""
    query = TaskQuery(
        status=split_csv(status_),
        priority=split_csv(priority),
        tags=split_csv(tags),
        assignee_ids=split_csv_ints(assignee_ids, "assignee_ids"),
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        q=q,
    )
    return await service.progress(query)
