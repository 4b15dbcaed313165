from sqlalchemy import Column, String, JSON, Enum as SQLEnum

from taskmaster.core.database import Base, BigIntId, Timestamp
from taskmaster.models.enums import UserRole, enum_values
from taskmaster.utils.timezone import utcnow


def default_notification_settings():
    return {"in_app": True, "email": False}


class User(Base):
    __tablename__ = "users"

    user_id = Column(BigIntId, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    role = Column(
        SQLEnum(UserRole, values_callable=enum_values, name="user_role"),
        nullable=False,
        default=UserRole.REGULAR,
    )
    notification_settings = Column(JSON, nullable=False, default=default_notification_settings)
    created_at = Column(Timestamp, nullable=False, default=utcnow)
    updated_at = Column(Timestamp, nullable=False, default=utcnow)

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    def __repr__(self):
        return f"<User(user_id={self.user_id}, email='{self.email}', role='{self.role}')>"
