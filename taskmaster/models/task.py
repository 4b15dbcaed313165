"""
Task 모델 정의
작업 본체 + 담당자(assignee) / 태그 / 리마인더 하위 테이블
"""
from sqlalchemy import Column, BigInteger, String, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship

from taskmaster.core.database import Base, BigIntId, Timestamp
from taskmaster.models.enums import TaskStatus, TaskPriority, ReminderPreset, enum_values
from taskmaster.utils.timezone import utcnow


class Task(Base):
    """작업 모델"""
    __tablename__ = "tasks"

    task_id = Column(BigIntId, primary_key=True, autoincrement=True)
    creator_user_id = Column(BigInteger, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    due_date = Column(Timestamp, index=True)
    priority = Column(
        SQLEnum(TaskPriority, values_callable=enum_values, name="task_priority"),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    status = Column(
        SQLEnum(TaskStatus, values_callable=enum_values, name="task_status"),
        nullable=False,
        default=TaskStatus.TODO,
    )
    created_at = Column(Timestamp, nullable=False, default=utcnow)
    updated_at = Column(Timestamp, nullable=False, default=utcnow)

    # 관계 설정
    creator = relationship("User")
    assignments = relationship(
        "TaskAssignee",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskAssignee.assigned_at",
    )
    tag_rows = relationship("TaskTag", back_populates="task", cascade="all, delete-orphan")
    reminders = relationship(
        "TaskReminder",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskReminder.remind_at",
    )
    comments = relationship(
        "Comment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )

    @property
    def tags(self) -> list[str]:
        return sorted(row.tag for row in self.tag_rows)

    @property
    def assignee_ids(self) -> set[int]:
        return {a.user_id for a in self.assignments}

    def __repr__(self):
        return f"<Task(task_id={self.task_id}, title='{self.title}', status='{self.status}')>"


class TaskAssignee(Base):
    __tablename__ = "task_assignees"

    task_id = Column(BigInteger, ForeignKey("tasks.task_id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(BigInteger, ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True, index=True)
    assigned_at = Column(Timestamp, nullable=False, default=utcnow)

    task = relationship("Task", back_populates="assignments")
    user = relationship("User")


class TaskTag(Base):
    __tablename__ = "task_tags"

    task_id = Column(BigInteger, ForeignKey("tasks.task_id", ondelete="CASCADE"), primary_key=True)
    tag = Column(String(100), primary_key=True, index=True)

    task = relationship("Task", back_populates="tag_rows")


class TaskReminder(Base):
    """due_date + preset 으로 생성 시점에 계산된 스냅샷 (due_date 변경 시 재계산하지 않음)"""
    __tablename__ = "task_reminders"

    reminder_id = Column(BigIntId, primary_key=True, autoincrement=True)
    task_id = Column(BigInteger, ForeignKey("tasks.task_id", ondelete="CASCADE"), nullable=False, index=True)
    remind_at = Column(Timestamp, nullable=False, index=True)
    preset = Column(
        SQLEnum(ReminderPreset, values_callable=enum_values, name="reminder_preset"),
        nullable=False,
    )
    created_at = Column(Timestamp, nullable=False, default=utcnow)
    fired_at = Column(Timestamp)

    task = relationship("Task", back_populates="reminders")
