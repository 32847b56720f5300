"""Repository utility functions for common database operations."""

import math
import re
import time
from collections.abc import Awaitable, Callable, Sequence
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

from core.logger import get_logger
from core.wide_event import set_wide_event_fields
from schemas import PaginationLinks, PaginationMeta

logger = get_logger(__name__)

# Threshold for logging slow queries (milliseconds)
SLOW_QUERY_THRESHOLD_MS = 500

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")

P = ParamSpec("P")
R = TypeVar("R")


def log_slow_query(
    operation_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator to record slow repository operations and errors.

    Slow queries and exceptions are added to the request's wide event.
    Exceptions are re-raised unchanged.

    Usage:
        @log_slow_query("topic_get_by_key")
        async def get_by_key(self, key: str) -> Topic | None:
            ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
                duration_ms = (time.perf_counter() - start_time) * 1000
                if duration_ms > SLOW_QUERY_THRESHOLD_MS:
                    logger.debug(
                        "db.query.slow",
                        operation=operation_name,
                        duration_ms=round(duration_ms, 2),
                    )
                    set_wide_event_fields(
                        db_slow_query=True,
                        db_operation=operation_name,
                        db_duration_ms=round(duration_ms, 2),
                    )
                return result
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                set_wide_event_fields(
                    db_query_error=True,
                    db_operation=operation_name,
                    db_duration_ms=round(duration_ms, 2),
                    db_error=str(e),
                    db_error_type=type(e).__name__,
                )
                raise

        return wrapper

    return decorator


def slugify(value: str) -> str:
    """Return a URL-safe slug: lowercase, non-alphanumeric runs become one hyphen.

    >>> slugify("Sports & Games")
    'sports-games'
    """
    return _SLUG_PATTERN.sub("-", value.lower()).strip("-")


def clamp_limit(limit: int, max_limit: int) -> int:
    """Cap a client-requested page size at ``max_limit``."""
    return max_limit if limit > max_limit else limit


def build_page_links(
    route: str | None, page: int, limit: int, total_pages: int
) -> PaginationLinks:
    """Build first/previous/next/last query links for a page.

    ``route`` may already end with ``?`` or carry a query string; page and
    limit are appended either way.
    """
    if not route:
        return PaginationLinks()

    if route.endswith(("?", "&")):
        separator = ""
    elif "?" in route:
        separator = "&"
    else:
        separator = "?"

    def _link(target: int) -> str:
        return f"{route}{separator}page={target}&limit={limit}"

    return PaginationLinks(
        first=_link(1),
        previous=_link(page - 1) if page > 1 else "",
        next=_link(page + 1) if page < total_pages else "",
        last=_link(total_pages) if total_pages > 0 else "",
    )


async def paginate(
    db: AsyncSession,
    stmt: Select[Any],
    count_stmt: Select[Any],
    *,
    page: int,
    limit: int,
    route: str | None = None,
) -> tuple[Sequence[Any], PaginationMeta, PaginationLinks]:
    """Run ``stmt`` as one page and ``count_stmt`` for the total.

    ``stmt`` must already carry its joins, filters and ordering, and
    ``count_stmt`` the same joins and filters. Returns ORM rows, page
    metadata and navigation links.
    """
    total_items = (await db.execute(count_stmt)).scalar_one()

    result = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    items = result.unique().scalars().all()

    total_pages = math.ceil(total_items / limit) if limit else 0
    meta = PaginationMeta(
        item_count=len(items),
        total_items=total_items,
        items_per_page=limit,
        total_pages=total_pages,
        current_page=page,
    )
    return items, meta, build_page_links(route, page, limit, total_pages)
