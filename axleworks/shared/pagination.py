"""Offset pagination shared by the list endpoints"""

from dataclasses import dataclass

from fastapi import Query
from sqlalchemy.orm import Query as SQLQuery

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


@dataclass(frozen=True)
class PageParams:
    skip: int = 0
    limit: int = DEFAULT_PAGE_SIZE

    def apply(self, query: SQLQuery) -> SQLQuery:
        return query.offset(self.skip).limit(self.limit)


def get_page_params(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
) -> PageParams:
    """Dependency for ?skip=&limit= query parameters"""
    return PageParams(skip=skip, limit=limit)
