from sqlalchemy import Column, BigInteger, Text, ForeignKey
from sqlalchemy.orm import relationship

from taskmaster.core.database import Base, BigIntId, Timestamp
from taskmaster.utils.timezone import utcnow


class Comment(Base):
    __tablename__ = "task_comments"

    comment_id = Column(BigIntId, primary_key=True, autoincrement=True)
    task_id = Column(BigInteger, ForeignKey("tasks.task_id", ondelete="CASCADE"), nullable=False, index=True)
    author_user_id = Column(BigInteger, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    body = Column(Text, nullable=False)
    created_at = Column(Timestamp, nullable=False, default=utcnow)
    updated_at = Column(Timestamp)
    # 약한 역참조: 부모 삭제 시 NULL 로 (답글은 유지)
    parent_comment_id = Column(BigInteger, ForeignKey("task_comments.comment_id", ondelete="SET NULL"))

    task = relationship("Task", back_populates="comments")
    author = relationship("User")

    def __repr__(self):
        return f"<Comment(comment_id={self.comment_id}, task_id={self.task_id})>"
