from dataclasses import dataclass
from typing import Union

from sqlalchemy import Column, BigInteger, Text, Boolean, ForeignKey, Enum as SQLEnum

from taskmaster.core.database import Base, BigIntId, Timestamp
from taskmaster.models.enums import NotificationType, enum_values
from taskmaster.utils.timezone import utcnow


@dataclass(frozen=True)
class TaskRef:
    task_id: int


@dataclass(frozen=True)
class CommentRef:
    comment_id: int


NotificationRef = Union[TaskRef, CommentRef]

# type 별 reference_id 의미
REF_KIND = {
    NotificationType.TASK_ASSIGNMENT: TaskRef,
    NotificationType.TASK_UPDATE: TaskRef,
    NotificationType.REMINDER: TaskRef,
    NotificationType.NEW_COMMENT: CommentRef,
}


def ref_id(ref: NotificationRef) -> int:
    if isinstance(ref, TaskRef):
        return ref.task_id
    return ref.comment_id


class Notification(Base):
    """
    알림 레코드.
    reference_id 는 FK 가 아니므로 작업 삭제 후에도 이력으로 남는다.
    """
    __tablename__ = "notifications"

    notification_id = Column(BigIntId, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(
        SQLEnum(NotificationType, values_callable=enum_values, name="notification_type"),
        nullable=False,
    )
    reference_id = Column(BigInteger)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(Timestamp, nullable=False, default=utcnow)

    @classmethod
    def build(cls, user_id: int, kind: NotificationType, ref: NotificationRef, message: str) -> "Notification":
        expected = REF_KIND[kind]
        if not isinstance(ref, expected):
            raise TypeError(f"{kind.value} notification requires {expected.__name__}, got {type(ref).__name__}")
        return cls(user_id=user_id, type=kind, reference_id=ref_id(ref), message=message, is_read=False)

    @property
    def ref(self) -> NotificationRef:
        return REF_KIND[self.type](self.reference_id)

    def __repr__(self):
        return f"<Notification(notification_id={self.notification_id}, user_id={self.user_id}, type='{self.type}')>"
