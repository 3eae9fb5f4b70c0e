"""
Generic page-based slicing over any SQLAlchemy ``Select``.

``paginate`` issues exactly two statements:

1. ``SELECT count(*)`` over the filtered query (ordering stripped).
2. The filtered query itself with ``LIMIT``/``OFFSET`` applied.

The engine trusts its inputs.  Callers validate ``page >= 1`` and clamp
``per_page`` (see ``PaginationParams``) before calling it.  A page past
the end is not an error: it comes back with empty ``data`` and
``from > to``.

Results are only reproducible across pages when the ordering is total,
so callers pass a unique column (normally the primary key) as
``tiebreaker``; it is appended after whatever ordering ``filter_fn``
applied.
"""
from __future__ import annotations

import math
from typing import Callable

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from blogapi.schemas import Page

FilterFn = Callable[[Select], Select]


def page_bounds(page: int, per_page: int, total: int) -> tuple[int, int, int, int]:
    """Return ``(offset, from, to, last_page)`` for one pagination window."""
    offset = (page - 1) * per_page
    return (
        offset,
        offset + 1,
        min(offset + per_page, total),
        math.ceil(total / per_page) if total > 0 else 0,
    )


async def paginate(
    db: AsyncSession,
    base_query: Select,
    page: int,
    per_page: int,
    filter_fn: FilterFn | None = None,
    tiebreaker: ColumnElement | None = None,
) -> Page:
    """
    Return one page of *base_query* after applying *filter_fn*.

    ``data`` holds the raw result rows (``Row`` objects); services turn
    them into result types with ``Page.map``.
    """
    query = filter_fn(base_query) if filter_fn is not None else base_query

    count_q = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await db.execute(count_q)).scalar_one()

    offset, first, last, last_page = page_bounds(page, per_page, total)

    rows_q = query
    if tiebreaker is not None:
        rows_q = rows_q.order_by(tiebreaker)
    rows_q = rows_q.offset(offset).limit(per_page)
    rows = (await db.execute(rows_q)).all()

    return Page(
        data=list(rows),
        current_page=page,
        from_=first,
        to=last,
        last_page=last_page,
        per_page=per_page,
        total=total,
    )
