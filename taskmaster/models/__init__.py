from taskmaster.models.user import User
from taskmaster.models.task import Task, TaskAssignee, TaskTag, TaskReminder
from taskmaster.models.comment import Comment
from taskmaster.models.notification import Notification, NotificationRef, TaskRef, CommentRef

__all__ = [
    "User",
    "Task",
    "TaskAssignee",
    "TaskTag",
    "TaskReminder",
    "Comment",
    "Notification",
    "NotificationRef",
    "TaskRef",
    "CommentRef",
]
