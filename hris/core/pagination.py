import math
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Query
from sqlalchemy.orm import Query as SAQuery

from hris.core.schemas import Pagination

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class PageParams:
    page: int
    limit: int
    sort_by: Optional[str]
    sort_order: str

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, description="1-based page number"),
    limit: int = Query(DEFAULT_LIMIT, description="Page size (max 100)"),
    sort_by: Optional[str] = Query(None),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
) -> PageParams:
    """Out-of-range page/limit values are clamped rather than rejected."""
    return PageParams(
        page=max(1, page),
        limit=min(MAX_LIMIT, max(1, limit)),
        sort_by=sort_by,
        sort_order=sort_order,
    )


def apply_sort(
    query: SAQuery,
    model,
    params: PageParams,
    allowed: Iterable[str],
    default: str,
    default_order: str = "asc",
) -> SAQuery:
    """Unknown sort_by values fall back to the resource default column and order."""
    if params.sort_by in set(allowed):
        column, order = getattr(model, params.sort_by), params.sort_order
    else:
        column, order = getattr(model, default), default_order
    if order == "desc":
        return query.order_by(column.desc(), model.id.desc())
    return query.order_by(column.asc(), model.id.asc())


def build_pagination(total: int, params: PageParams) -> Pagination:
    total_pages = math.ceil(total / params.limit) if total else 0
    return Pagination(
        page=params.page,
        limit=params.limit,
        total=total,
        total_pages=total_pages,
        has_next=params.page < total_pages,
        has_prev=params.page > 1,
    )


def paginate(query: SAQuery, params: PageParams):
    """Returns (items, Pagination) for an already filtered and ordered query."""
    total = query.order_by(None).count()
    items = query.offset(params.skip).limit(params.limit).all()
    return items, build_pagination(total, params)
