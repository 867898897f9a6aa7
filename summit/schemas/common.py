"""
schemas/common.py
-----------------
Envelope shared by every list endpoint:

    {"data": [...], "meta": {"total", "page", "limit", "page_count"}}
"""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    page_count: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PageMeta":
        return cls(
            total=total,
            page=page,
            limit=limit,
            page_count=math.ceil(total / limit) if limit else 0,
        )


class Page(BaseModel, Generic[T]):
    data: List[T]
    meta: PageMeta


class SuccessResponse(BaseModel):
    success: bool = True
    message: str = ""
