from typing import Any, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    success: bool = False
    code: str
    error: str
    data: Optional[Any] = None


class PaginationInfo(BaseModel):
    current_page: int
    page_size: int
    total_items: int
    total_pages: int


class CountResponse(BaseModel):
    count: int
