"""
JWT 검증 (HS256). 토큰 발급은 인증 서비스 담당이며,
create_access_token 은 시드 스크립트/테스트용이다.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from taskmaster.core.config import settings
from taskmaster.core.exceptions import UnauthorizedError
from taskmaster.models.enums import UserRole


def create_access_token(user_id: int, role: UserRole | str, expires_minutes: int = 60 * 24) -> str:
    payload = {
        "user_id": user_id,
        "role": role.value if isinstance(role, UserRole) else role,
        "exp": int((datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: Optional[str]) -> Dict[str, Any]:
    """claims {user_id, role} 반환. 없거나 위조/만료면 UnauthorizedError"""
    if not token:
        raise UnauthorizedError("Missing bearer token")
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Invalid token")

    user_id = payload.get("user_id")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token")
    try:
        role = UserRole(payload.get("role", UserRole.REGULAR.value))
    except ValueError:
        raise UnauthorizedError("Invalid token")
    return {"user_id": user_id, "role": role}


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None
