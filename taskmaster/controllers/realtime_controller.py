"""
/ws - 사용자 룸 자동 참여 + task 룸 구독 제어

클라이언트 → 서버: {"event": "subscribe_task" | "unsubscribe_task", "task_id": N}
서버 → 클라이언트: {"event": "subscribed" | "unsubscribed" | "error", ...}
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.core.database import get_db
from taskmaster.core.exceptions import UnauthorizedError
from taskmaster.core.security import bearer_token, decode_access_token
from taskmaster.repositories.user_repository import UserRepository
from taskmaster.services.realtime import ConnectionRegistry, task_room

router = APIRouter()
logger = logging.getLogger(__name__)


def _token_from(websocket: WebSocket) -> Optional[str]:
    return websocket.query_params.get("token") or bearer_token(websocket.headers.get("authorization"))


def _parse_task_id(message: dict) -> Optional[int]:
    task_id = message.get("task_id")
    if isinstance(task_id, bool):
        return None
    try:
        return int(task_id)
    except (TypeError, ValueError):
        return None


@router.websocket("/ws")
async def realtime_ws(websocket: WebSocket, db: AsyncSession = Depends(get_db)):
    try:
        claims = decode_access_token(_token_from(websocket))
    except UnauthorizedError as e:
        logger.warning(f"WS rejected: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = claims["user_id"]
    user = await UserRepository(db).get(user_id)
    # 연결이 살아있는 동안 DB 커넥션을 붙잡지 않음
    await db.close()
    if user is None:
        logger.warning(f"WS rejected: unknown user_id={user_id}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    registry: ConnectionRegistry = websocket.app.state.registry
    await websocket.accept()
    await registry.connect(user_id, websocket)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({"event": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"event": "error", "message": "Message must be an object"})
                continue

            event = message.get("event")
            if event not in ("subscribe_task", "unsubscribe_task"):
                await websocket.send_json({"event": "error", "message": f"Unknown event: {event}"})
                continue
            task_id = _parse_task_id(message)
            if task_id is None:
                await websocket.send_json({"event": "error", "message": "task_id: must be an integer"})
                continue

            if event == "subscribe_task":
                await registry.subscribe_task(websocket, task_id)
                await websocket.send_json({"event": "subscribed", "room": task_room(task_id), "task_id": task_id})
            else:
                await registry.unsubscribe_task(websocket, task_id)
                await websocket.send_json({"event": "unsubscribed", "room": task_room(task_id), "task_id": task_id})
    except WebSocketDisconnect:
        pass
    finally:
        await registry.disconnect(websocket)
