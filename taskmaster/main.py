import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from taskmaster.controllers import all_routers
from taskmaster.core.config import settings
from taskmaster.core.database import AsyncSessionLocal
from taskmaster.core.exceptions import BusinessException, ErrorCode
from taskmaster.core.middleware import LoggingMiddleware, setup_logging
from taskmaster.schemas.base import ErrorResponse
from taskmaster.services.notification_service import NotificationService
from taskmaster.services.realtime import ConnectionRegistry
from taskmaster.services.reminder_service import ReminderService

setup_logging()
logger = logging.getLogger(__name__)


async def reminder_loop(registry: ConnectionRegistry, interval: int) -> None:
    """REMINDER_POLL_SECONDS 주기로 기한 지난 리마인더 발송"""
    while True:
        await asyncio.sleep(interval)
        try:
            async with AsyncSessionLocal() as session:
                await ReminderService(session, NotificationService(session, registry)).dispatch_due()
        except Exception:
            logger.exception("Reminder poll failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.registry = ConnectionRegistry()
    poller = None
    if settings.REMINDER_POLL_SECONDS > 0:
        poller = asyncio.create_task(reminder_loop(app.state.registry, settings.REMINDER_POLL_SECONDS))
        logger.info(f"Reminder poller started: every {settings.REMINDER_POLL_SECONDS}s")
    yield
    if poller is not None:
        poller.cancel()
        try:
            await poller
        except asyncio.CancelledError:
            pass


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# =================================================================
# 1. CORS 설정
# =================================================================
origins = settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS != "*" else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =================================================================
# 2. 미들웨어 및 모니터링
# =================================================================
app.add_middleware(LoggingMiddleware)
Instrumentator().instrument(app).expose(app)

# =================================================================
# 3. 라우터 등록
# =================================================================
for router, prefix, tag in all_routers:
    app.include_router(router, prefix=settings.API_PREFIX + prefix, tags=[tag])


# =================================================================
# 4. 예외 핸들러
# =================================================================
def error_body(code: str, message: str) -> dict:
    return ErrorResponse(code=code, error=message).model_dump()


@app.exception_handler(BusinessException)
async def business_exception_handler(request: Request, exc: BusinessException):
    return JSONResponse(
        status_code=exc.error_code.http_status,
        content=error_body(exc.error_code.biz_code, exc.message),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        # ("body", "title") -> "title"
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "header")]
        field = ".".join(loc) or "request"
        messages.append(f"{field}: {err.get('msg')}")
    code = ErrorCode.INVALID_INPUT
    return JSONResponse(status_code=code.http_status, content=error_body(code.biz_code, "; ".join(messages)))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    code = ErrorCode.INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=code.http_status, content=error_body(code.biz_code, code.default_message))


@app.get("/")
async def root():
    return {"message": "TaskMaster collaboration service is running", "service": "taskmaster-collab"}
