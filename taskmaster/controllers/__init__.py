from .health_controller import router as health_router
from .task_controller import router as task_router
from .comment_controller import router as comment_router
from .notification_controller import router as notification_router
from .user_controller import router as user_router
from .team_controller import router as team_router
from .realtime_controller import router as realtime_router

# (router, prefix, tags) 순서로 정의
all_routers = [
    (health_router, "/health", "Health"),
    (task_router, "/tasks", "Tasks"),
    (comment_router, "", "Comments"),  # /tasks/{id}/comments, /comments/{id}
    (notification_router, "/notifications", "Notifications"),
    (user_router, "/users", "Users"),
    (team_router, "/team", "Team"),
    (realtime_router, "", "Realtime"),  # /ws
]
