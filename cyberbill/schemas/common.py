from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    pages: int
    per_page: int
    has_next: bool
    has_prev: bool


class MessageResponse(BaseModel):
    message: str
