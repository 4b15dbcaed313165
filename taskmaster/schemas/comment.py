from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from taskmaster.models.comment import Comment


class CommentCreate(BaseModel):
    body: str
    parent_comment_id: Optional[int] = None


class CommentUpdate(BaseModel):
    body: str


class CommentResponse(BaseModel):
    comment_id: int
    task_id: int
    author_user_id: int
    author_name: Optional[str] = None
    body: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    parent_comment_id: Optional[int] = None


def to_comment_response(comment: Comment) -> CommentResponse:
    # author 는 repository 에서 selectinload 된 상태여야 함
    return CommentResponse(
        comment_id=comment.comment_id,
        task_id=comment.task_id,
        author_user_id=comment.author_user_id,
        author_name=comment.author.name if comment.author else None,
        body=comment.body,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        parent_comment_id=comment.parent_comment_id,
    )
