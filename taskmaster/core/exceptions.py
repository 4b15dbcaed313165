"""
공통 예외 정의

엔진(서비스)은 타입이 있는 예외를 던지고, main.py 의 전역 핸들러가
HTTP 상태코드 + {"success": false, "code", "error", "data"} 로 변환한다.
"""
from enum import Enum


class ErrorCode(Enum):
    INVALID_INPUT = (400, "TSK_400", "Invalid input")
    UNAUTHORIZED = (401, "AUTH_401", "Authentication required")
    FORBIDDEN = (403, "TSK_403", "Forbidden")
    NOT_FOUND = (404, "TSK_404", "Resource not found")
    CONFLICT = (409, "TSK_409", "Conflict")
    INTERNAL_SERVER_ERROR = (500, "SYS_500", "Internal server error")

    def __init__(self, http_status: int, biz_code: str, default_message: str):
        self.http_status = http_status
        self.biz_code = biz_code
        self.default_message = default_message


class BusinessException(Exception):
    def __init__(self, error_code: ErrorCode, message: str | None = None):
        self.error_code = error_code
        self.message = message or error_code.default_message
        super().__init__(self.message)


class ValidationError(BusinessException):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.INVALID_INPUT, message)


class UnauthorizedError(BusinessException):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.UNAUTHORIZED, message)


class ForbiddenError(BusinessException):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.FORBIDDEN, message)


class NotFoundError(BusinessException):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.NOT_FOUND, message)


class ConflictError(BusinessException):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.CONFLICT, message)


class InternalError(BusinessException):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.INTERNAL_SERVER_ERROR, message)
