from . import realtime
from . import notification_service
from . import task_service
from . import comment_service
from . import query_service
from . import reminder_service
from . import dashboard_service
from . import access_policy

__all__ = [
    "realtime",
    "notification_service",
    "task_service",
    "comment_service",
    "query_service",
    "reminder_service",
    "dashboard_service",
    "access_policy",
]
