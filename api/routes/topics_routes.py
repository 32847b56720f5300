"""Client-facing topic endpoints (read only)."""

from fastapi import APIRouter

from core.config import get_settings
from core.database import DbSession
from core.request_params import PageParams, RequestLanguage
from schemas import FeatureTopicResponse, Page, TopicResponse
from services import topics_service

router = APIRouter(prefix="/api/topics", tags=["topics"])


@router.get("", response_model=list[TopicResponse])
async def list_topics(
    db: DbSession, lang: RequestLanguage, enabled: bool | None = None
) -> list[TopicResponse]:
    """All topics having a translation in ``lang``, unpaginated."""
    topics = await topics_service.find_all_by_client_no_pagination(db, lang, enabled)
    return [TopicResponse.model_validate(topic) for topic in topics]


@router.get("/paginate", response_model=Page[TopicResponse])
async def paginate_topics(
    db: DbSession,
    lang: RequestLanguage,
    paging: PageParams,
    enabled: bool | None = None,
) -> Page[TopicResponse]:
    route = f"{get_settings().public_base_url.rstrip('/')}/api/topics/paginate?lang={lang}"
    if enabled is not None:
        route += f"&enabled={str(enabled).lower()}"
    items, meta, links = await topics_service.find_all_by_client_pagination(
        db,
        page=paging.page,
        limit=paging.limit,
        lang=lang,
        enabled=enabled,
        route=route,
    )
    return Page[TopicResponse](
        items=[TopicResponse.model_validate(topic) for topic in items],
        meta=meta,
        links=links,
    )


@router.get("/feature", response_model=list[FeatureTopicResponse])
async def feature_topics(
    db: DbSession, lang: RequestLanguage
) -> list[FeatureTopicResponse]:
    """The most-selected topics, named in ``lang`` where possible."""
    rows = await topics_service.find_feature_topics(db, lang)
    return [
        FeatureTopicResponse(
            topic_key=row.topic_key, name=row.name, selections=row.selections
        )
        for row in rows
    ]
