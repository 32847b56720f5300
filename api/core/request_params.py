"""FastAPI dependencies for per-request language and paging.

Routes declare ``lang: RequestLanguage`` and ``paging: PageParams`` instead of
falling back to defaults by hand.
"""

from typing import Annotated, NamedTuple

from fastapi import Depends, Query, Request

from core.config import get_settings
from core.i18n import resolve_language
from core.wide_event import set_wide_event_fields
from repositories.utils import clamp_limit


def get_request_language(
    request: Request,
    lang: Annotated[
        str | None,
        Query(description="Content language; defaults to the server default"),
    ] = None,
) -> str:
    """Resolve the request language: ``lang`` query, then Accept-Language, then default."""
    resolved = resolve_language(lang, request.headers.get("accept-language"))
    set_wide_event_fields(request_lang=resolved)
    return resolved


RequestLanguage = Annotated[str, Depends(get_request_language)]


class Paging(NamedTuple):
    page: int
    limit: int


def get_paging(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> Paging:
    """Page number and page size, with the size capped at the configured maximum."""
    settings = get_settings()
    if limit is None:
        limit = settings.pagination_default_limit
    return Paging(page=page, limit=clamp_limit(limit, settings.pagination_max_limit))


PageParams = Annotated[Paging, Depends(get_paging)]
