from typing import Dict, List, Optional

from pydantic import BaseModel


class AssigneeWorkload(BaseModel):
    user_id: int
    name: Optional[str] = None
    counts: Dict[str, int]


class TeamProgressResponse(BaseModel):
    total: int
    counts: Dict[str, int]
    assignees: List[AssigneeWorkload]
