import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from taskmaster.core.config import settings

logger = logging.getLogger("api_logger")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """루트 로거 포맷/레벨 설정 (uvicorn 로거는 건드리지 않음)"""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청 메서드/경로/상태코드/처리시간 로깅"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception(f"{request.method} {request.url.path} failed after {elapsed_ms:.1f}ms")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response
