from datetime import timedelta
from enum import Enum


# 사용자 역할 (manager ⊇ regular)
class UserRole(str, Enum):
    REGULAR = "regular"
    MANAGER = "manager"


# 작업 상태 (전이 제한 없음)
class TaskStatus(str, Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


# 작업 우선순위
class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# 정렬용 (Low < Medium < High)
PRIORITY_RANK = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
}


# 알림 타입 (wire 값)
class NotificationType(str, Enum):
    TASK_ASSIGNMENT = "task_assignment"
    TASK_UPDATE = "task_update"
    NEW_COMMENT = "new_comment"
    REMINDER = "reminder"


# 리마인더 프리셋
class ReminderPreset(str, Enum):
    ONE_HOUR_BEFORE = "1_hour_before"
    ONE_DAY_BEFORE = "1_day_before"

    @property
    def offset(self) -> timedelta:
        if self is ReminderPreset.ONE_HOUR_BEFORE:
            return timedelta(hours=1)
        return timedelta(days=1)

    @classmethod
    def parse(cls, value: str) -> "ReminderPreset":
        """'1 hour' / '1 day' 같은 클라이언트 표기도 허용"""
        normalized = value.strip().lower().replace(" ", "_")
        aliases = {"1_hour": cls.ONE_HOUR_BEFORE, "1_day": cls.ONE_DAY_BEFORE}
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)


# 실시간 채널 이벤트
class RealtimeEvent(str, Enum):
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    COMMENT_ADDED = "comment_added"
    COMMENT_UPDATED = "comment_updated"
    COMMENT_DELETED = "comment_deleted"
    NOTIFICATION_CREATED = "notification_created"


def enum_values(enum_cls):
    """SQLEnum 이 name 이 아닌 value 를 저장하도록"""
    return [member.value for member in enum_cls]
