"""
Realtime Channel - 사용자 룸(user:{id}) / 작업 룸(task:{id}) 기반 push

앱 lifespan 에서 생성되어 app.state.registry 로 주입된다.
프로세스 로컬 상태이므로 여러 인스턴스로 띄우면 룸이 공유되지 않는다.
"""
import asyncio
import logging
from typing import Any, Dict, Protocol, Set

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...


def user_room(user_id: int) -> str:
    return f"user:{user_id}"


def task_room(task_id: int) -> str:
    return f"task:{task_id}"


class ConnectionRegistry:
    def __init__(self):
        self.user_connections: Dict[int, Set[Connection]] = {}
        self.task_subscribers: Dict[int, Set[Connection]] = {}
        self.connection_users: Dict[Connection, int] = {}
        self._lock = asyncio.Lock()

    async def connect(self, user_id: int, connection: Connection) -> None:
        async with self._lock:
            self.user_connections.setdefault(user_id, set()).add(connection)
            self.connection_users[connection] = user_id
        logger.info(f"WS connected: user_id={user_id}, connections={self.connection_count(user_id)}")

    async def disconnect(self, connection: Connection) -> None:
        """해당 연결만 정리. 마지막 연결이면 사용자 룸 자체를 제거"""
        async with self._lock:
            self._remove(connection)

    def _remove(self, connection: Connection) -> None:
        user_id = self.connection_users.pop(connection, None)
        if user_id is not None:
            conns = self.user_connections.get(user_id)
            if conns is not None:
                conns.discard(connection)
                if not conns:
                    del self.user_connections[user_id]
        for task_id in list(self.task_subscribers):
            subscribers = self.task_subscribers[task_id]
            subscribers.discard(connection)
            if not subscribers:
                del self.task_subscribers[task_id]
        if user_id is not None:
            logger.info(f"WS disconnected: user_id={user_id}, remaining={self.connection_count(user_id)}")

    async def subscribe_task(self, connection: Connection, task_id: int) -> None:
        async with self._lock:
            self.task_subscribers.setdefault(task_id, set()).add(connection)

    async def unsubscribe_task(self, connection: Connection, task_id: int) -> None:
        async with self._lock:
            subscribers = self.task_subscribers.get(task_id)
            if subscribers is None:
                return
            subscribers.discard(connection)
            if not subscribers:
                del self.task_subscribers[task_id]

    def connection_count(self, user_id: int) -> int:
        return len(self.user_connections.get(user_id, ()))

    def subscriber_count(self, task_id: int) -> int:
        return len(self.task_subscribers.get(task_id, ()))

    # =========================================================
    # Push
    # =========================================================
    async def send_to_user(self, user_id: int, event: str, payload: Dict[str, Any]) -> int:
        async with self._lock:
            targets = list(self.user_connections.get(user_id, ()))
        return await self._deliver(targets, {"event": event, "room": user_room(user_id), "payload": payload})

    async def broadcast_task(self, task_id: int, event: str, payload: Dict[str, Any]) -> int:
        async with self._lock:
            targets = list(self.task_subscribers.get(task_id, ()))
        return await self._deliver(targets, {"event": event, "room": task_room(task_id), "payload": payload})

    async def _deliver(self, targets, message: Dict[str, Any]) -> int:
        """전송 실패한 연결은 정리하고 성공 건수 반환"""
        delivered = 0
        for conn in targets:
            try:
                await conn.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"WS send failed ({message['room']}, {message['event']}): {e}")
                async with self._lock:
                    self._remove(conn)
        return delivered
