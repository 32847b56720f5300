"""Admin topic endpoints (multilingual CRUD)."""

from typing import Annotated

from fastapi import APIRouter, Query, Request, Response
from starlette import status

from core.database import DbSession
from core.ratelimit import ADMIN_WRITE_LIMIT, limiter
from core.request_params import PageParams, RequestLanguage
from schemas import (
    BulkDeleteResponse,
    CreateTopicRequest,
    ErrorResponse,
    Page,
    TopicResponse,
    UpdateTopicRequest,
)
from services import topics_service

router = APIRouter(prefix="/api/admin/topics", tags=["topics-admin"])


def _split_keys(values: list[str]) -> list[str]:
    """Flatten ``?keys=a,b&keys=c`` into ``["a", "b", "c"]``."""
    keys: list[str] = []
    for value in values:
        keys.extend(part.strip() for part in value.split(",") if part.strip())
    return keys


@router.post(
    "",
    response_model=TopicResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Key or name taken"}},
)
@limiter.limit(ADMIN_WRITE_LIMIT)
async def create_topic(
    request: Request,
    body: CreateTopicRequest,
    db: DbSession,
    lang: RequestLanguage,
) -> TopicResponse:
    """Create a topic with its first translation (body ``lang`` wins over the request language)."""
    topic = await topics_service.create(db, body, body.lang or lang)
    return TopicResponse.model_validate(topic)


@router.get("", response_model=Page[TopicResponse])
async def list_topics(
    db: DbSession,
    lang: RequestLanguage,
    paging: PageParams,
    enabled: bool | None = None,
    slug: Annotated[str | None, Query(max_length=150)] = None,
) -> Page[TopicResponse]:
    """List topics having a translation in ``lang``, optionally searched by slug."""
    items, meta, links = await topics_service.find_all_by_admin(
        db,
        page=paging.page,
        limit=paging.limit,
        lang=lang,
        enabled=enabled,
        slug=slug,
    )
    return Page[TopicResponse](
        items=[TopicResponse.model_validate(topic) for topic in items],
        meta=meta,
        links=links,
    )


@router.get(
    "/{key}",
    response_model=TopicResponse,
    responses={404: {"model": ErrorResponse, "description": "Topic not found"}},
)
async def get_topic(
    key: str,
    db: DbSession,
    lang: RequestLanguage,
    enabled: bool | None = None,
) -> TopicResponse:
    topic = await topics_service.find_one(db, key, lang, enabled)
    return TopicResponse.model_validate(topic)


@router.put(
    "/{key}",
    response_model=TopicResponse,
    responses={
        400: {"model": ErrorResponse, "description": "New translation needs a name"},
        404: {"model": ErrorResponse, "description": "Topic not found"},
        409: {"model": ErrorResponse, "description": "Name taken by another topic"},
    },
)
@limiter.limit(ADMIN_WRITE_LIMIT)
async def update_topic(
    request: Request,
    key: str,
    body: UpdateTopicRequest,
    db: DbSession,
    lang: RequestLanguage,
) -> TopicResponse:
    topic = await topics_service.update(db, key, body, body.lang or lang)
    return TopicResponse.model_validate(topic)


@router.delete(
    "/{key}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Topic not found"},
        409: {"model": ErrorResponse, "description": "Audio or video linked"},
    },
)
@limiter.limit(ADMIN_WRITE_LIMIT)
async def delete_topic(request: Request, key: str, db: DbSession) -> Response:
    """Soft-delete a topic and its translations."""
    await topics_service.remove(db, key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "",
    response_model=BulkDeleteResponse,
    responses={
        404: {"model": ErrorResponse, "description": "No topic matched"},
        409: {"model": ErrorResponse, "description": "Audio or video linked"},
    },
)
@limiter.limit(ADMIN_WRITE_LIMIT)
async def delete_topics(
    request: Request,
    db: DbSession,
    keys: Annotated[list[str], Query(description="Comma-separated or repeated")],
) -> BulkDeleteResponse:
    """Soft-delete several topics at once. All-or-nothing on reference conflicts."""
    affected = await topics_service.remove_multi(db, _split_keys(keys))
    return BulkDeleteResponse(affected=affected)
