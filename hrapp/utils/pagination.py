"""페이지네이션 유틸리티 모듈.

Pagination utility module for SQLAlchemy async queries.
Provides a generic paginate function and the page metadata model
used by attendance history responses.
"""

import math
from typing import Any, Sequence

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


class PageInfo(BaseModel):
    """페이지네이션 메타데이터 모델.

    Pagination metadata for client-side pagination controls.

    Attributes:
        page: 현재 페이지 번호 (Current page number, 1-based)
        limit: 페이지당 항목 수 (Items per page)
        total_count: 전체 항목 수 (Total count across all pages)
        total_pages: 전체 페이지 수 (Total number of pages)
    """

    page: int  # 현재 페이지 번호 — 1부터 시작 (Current page, 1-indexed)
    limit: int  # 페이지당 항목 수 (Items per page)
    total_count: int  # 전체 항목 수 (Total item count)
    total_pages: int  # 전체 페이지 수 (Total pages, computed: ceil(total/limit))


def build_page_info(page: int, limit: int, total_count: int) -> PageInfo:
    """페이지 메타데이터를 계산합니다 — Compute page metadata (ceil division)."""
    total_pages: int = math.ceil(total_count / limit) if limit > 0 else 0
    return PageInfo(page=page, limit=limit, total_count=total_count, total_pages=total_pages)


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    page: int = 1,
    per_page: int = 20,
) -> tuple[Sequence[Any], int]:
    """SQLAlchemy 쿼리에 대한 페이지네이션을 수행합니다.

    Execute a paginated SQLAlchemy query, returning items and total count.
    Runs two queries: one for the total count (via subquery) and one for
    the actual page of results with OFFSET/LIMIT.

    Args:
        db: 비동기 DB 세션 (Async database session)
        query: SQLAlchemy Select 쿼리 (Base query to paginate)
        page: 요청 페이지 번호, 1부터 시작 (Page number, 1-indexed, default: 1)
        per_page: 페이지당 항목 수 (Items per page, default: 20)

    Returns:
        tuple[Sequence[Any], int]: (항목 목록, 전체 개수) 튜플
            (Tuple of paginated items and total count)
    """
    # 전체 개수 조회 — 정렬 제거 후 서브쿼리로 COUNT 실행 (Count total via subquery)
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await db.execute(count_query)).scalar() or 0

    # 페이지 항목 조회 — OFFSET/LIMIT 적용 (Fetch page items with offset/limit)
    offset: int = (page - 1) * per_page
    result = await db.execute(query.offset(offset).limit(per_page))
    items: Sequence[Any] = result.scalars().all()

    return items, total
