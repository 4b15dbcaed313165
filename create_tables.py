"""
TaskMaster 테이블 생성 스크립트
동기(pymysql) 엔진으로 모델 메타데이터 기준 테이블을 만들고, 필요하면 샘플 데이터를 넣는다.

    python create_tables.py            # 테이블 생성
    python create_tables.py --drop     # 삭제 후 재생성
    python create_tables.py --seed     # 샘플 사용자/작업 추가
"""
import argparse
import logging
from datetime import datetime

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from taskmaster.core.config import settings
from taskmaster.core.database import Base
from taskmaster.core.middleware import setup_logging
from taskmaster.models import Comment, Task, TaskAssignee, TaskReminder, TaskTag, User
from taskmaster.models.enums import ReminderPreset, TaskPriority, TaskStatus, UserRole

logger = logging.getLogger("create_tables")


def _ts(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%d %H:%M")


SEED_USERS = [
    (1, "alice@example.com", "Alice Johnson", UserRole.MANAGER, {"in_app": True, "email": False}),
    (2, "bob@example.com", "Bob Smith", UserRole.REGULAR, {"in_app": True, "email": True}),
    (3, "carol@example.com", "Carol Williams", UserRole.REGULAR, {"in_app": False, "email": True}),
    (4, "david@example.com", "David Brown", UserRole.REGULAR, {"in_app": True, "email": True}),
    (5, "eve@example.com", "Eve Davis", UserRole.MANAGER, {"in_app": True, "email": False}),
]

# (task_id, creator, title, description, due, priority, status, tags, assignees)
SEED_TASKS = [
    (101, 1, "Design new feature UI", "Create wireframes and mockups for the new dashboard feature.",
     "2024-06-30 17:00", TaskPriority.HIGH, TaskStatus.TODO, ["urgent", "frontend", "clientA"], [2, 3]),
    (102, 2, "Fix login bug", "Users cannot login when using special characters in password.",
     "2024-06-15 12:00", TaskPriority.MEDIUM, TaskStatus.IN_PROGRESS, ["bug", "backend"], [2]),
    (103, 3, "Write API documentation", "Document all endpoints for TaskMaster API v1.",
     None, TaskPriority.LOW, TaskStatus.TODO, ["documentation"], [3]),
    (104, 1, "Set up testing environment", "Prepare integration tests for critical workflows.",
     "2024-07-01 09:00", TaskPriority.MEDIUM, TaskStatus.TODO, ["testing", "ci"], [4]),
    (105, 5, "Plan quarterly roadmap", "Create roadmap presentation for next quarter.",
     "2024-06-20 15:00", TaskPriority.HIGH, TaskStatus.IN_PROGRESS, ["planning", "management"], [5, 1]),
]

# (comment_id, task_id, author, body, created, parent)
SEED_COMMENTS = [
    (201, 101, 2, "I started working on the wireframes, will share soon.", "2024-06-05 10:00", None),
    (202, 101, 3, "Please consider accessibility guidelines in the designs.", "2024-06-05 11:30", 201),
    (203, 102, 2, "Bug reproduced, looking into root cause.", "2024-06-06 10:00", None),
    (204, 105, 5, "We should align this with marketing team.", "2024-06-09 13:00", None),
]


def seed(session: Session) -> None:
    created = _ts("2024-06-01 08:00")
    for user_id, email, name, role, prefs in SEED_USERS:
        session.merge(User(
            user_id=user_id, email=email, password_hash=f"hashed_pw_{name.split()[0].lower()}",
            name=name, role=role, notification_settings=prefs, created_at=created, updated_at=created,
        ))
    session.flush()

    for task_id, creator, title, description, due, priority, status, tags, assignees in SEED_TASKS:
        due_date = _ts(due) if due else None
        task = Task(
            task_id=task_id, creator_user_id=creator, title=title, description=description,
            due_date=due_date, priority=priority, status=status, created_at=created, updated_at=created,
            tag_rows=[TaskTag(tag=tag) for tag in tags],
            assignments=[TaskAssignee(user_id=uid, assigned_at=created) for uid in assignees],
        )
        if due_date is not None:
            preset = ReminderPreset.ONE_HOUR_BEFORE
            task.reminders.append(TaskReminder(preset=preset, remind_at=due_date - preset.offset, created_at=created))
        session.merge(task)
    session.flush()

    for comment_id, task_id, author, body, at, parent in SEED_COMMENTS:
        session.merge(Comment(
            comment_id=comment_id, task_id=task_id, author_user_id=author, body=body,
            created_at=_ts(at), parent_comment_id=parent,
        ))
    session.commit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create TaskMaster tables")
    parser.add_argument("--drop", action="store_true", help="drop all tables first")
    parser.add_argument("--seed", action="store_true", help="insert sample users/tasks")
    args = parser.parse_args()

    setup_logging()
    engine = create_engine(settings.SYNC_DATABASE_URL, echo=settings.DB_ECHO)
    try:
        if args.drop:
            logger.info("Dropping tables...")
            Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        logger.info(f"Tables ready: {sorted(Base.metadata.tables)}")

        if args.seed:
            with Session(engine) as session:
                seed(session)
            logger.info("Sample data inserted")
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
