from fastapi import APIRouter, Request

router = APIRouter()


@router.get("")
async def health(request: Request):
    """프로세스/실시간 채널 상태 (DB 는 확인하지 않음)"""
    registry = getattr(request.app.state, "registry", None)
    return {
        "status": "healthy",
        "service": "taskmaster-collab",
        "realtime_users": len(registry.user_connections) if registry is not None else 0,
    }
