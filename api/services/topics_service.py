"""Topic service for multilingual topic administration and client reads.

A topic is a language-neutral parent row plus one translation row per
language. Reads always inner-join the translations, so a topic with no live
translation in the requested language is invisible in that language.

All writes of one call happen in the request transaction; ``get_db`` commits
on success and rolls back if anything here raises.
"""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.logger import get_logger
from core.telemetry import track_operation
from core.wide_event import set_wide_event_fields
from models import Topic, TopicTranslation
from repositories.topic_repository import (
    FeatureTopicRow,
    TopicLinkRepository,
    TopicQuery,
    TopicRepository,
    TopicTranslationRepository,
)
from repositories.utils import slugify
from schemas import (
    CreateTopicRequest,
    PaginationLinks,
    PaginationMeta,
    UpdateTopicRequest,
)

logger = get_logger(__name__)

TOPIC_ENTITY = "main.entity.topic"

# Number of entries returned by the most-selected topics ranking
FEATURE_TOPICS_LIMIT = 4


@track_operation("topic_create")
async def create(db: AsyncSession, request: CreateTopicRequest, lang: str) -> Topic:
    """Create a topic and its first translation in ``lang``.

    Raises:
        ConflictError: A live translation of any topic already uses the name,
            or the key is taken (soft-deleted topics included).
    """
    translation_repo = TopicTranslationRepository(db)
    topic_repo = TopicRepository(db)

    if await translation_repo.find_by_name(request.name) is not None:
        set_wide_event_fields(topic_conflict="name")
        raise ConflictError(
            "errors.duplicate_name", entity=TOPIC_ENTITY, name=request.name
        )

    if await topic_repo.get_by_key(request.key, include_deleted=True) is not None:
        set_wide_event_fields(topic_conflict="key")
        raise ConflictError(entity=TOPIC_ENTITY)

    topic = await topic_repo.create(
        key=request.key,
        slug=slugify(request.key),
        description=request.description,
        enabled=request.enabled,
        translations=[
            TopicTranslation(
                lang=lang,
                name=request.name,
                description=request.description,
            )
        ],
    )

    set_wide_event_fields(topic_key=topic.key, topic_lang=lang)
    logger.info("topic.created", topic_key=topic.key, lang=lang)
    return topic


@track_operation("topic_find_all_admin")
async def find_all_by_admin(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    lang: str,
    enabled: bool | None = None,
    slug: str | None = None,
    route: str | None = None,
) -> tuple[Sequence[Topic], PaginationMeta, PaginationLinks]:
    query = TopicQuery(lang=lang, enabled=enabled, slug_contains=slug)
    return await TopicRepository(db).paginate(
        query, page=page, limit=limit, route=route
    )


@track_operation("topic_find_one")
async def find_one(
    db: AsyncSession, key: str, lang: str, enabled: bool | None = None
) -> Topic:
    """Get one topic with its translation in ``lang``.

    Raises:
        NotFoundError: No live topic with that key has a live translation in
            ``lang`` (or it does not match ``enabled``).
    """
    topic = await TopicRepository(db).find_one(
        TopicQuery(key=key, lang=lang, enabled=enabled)
    )
    if topic is None:
        raise NotFoundError(entity=TOPIC_ENTITY)
    return topic


@track_operation("topic_update")
async def update(
    db: AsyncSession, key: str, request: UpdateTopicRequest, lang: str
) -> Topic:
    """Update a topic's parent fields and upsert its ``lang`` translation.

    The key never changes. ``description`` and ``enabled`` are written to the
    parent when present; the translation for ``(key, lang)`` is updated in
    place, or inserted when missing (which needs a name).

    Raises:
        NotFoundError: The topic does not exist.
        ConflictError: Another topic owns a live translation with the new name.
        ValidationError: A new translation would be created without a name.
    """
    topic_repo = TopicRepository(db)
    translation_repo = TopicTranslationRepository(db)

    topic = await topic_repo.get_by_key(key)
    if topic is None:
        raise NotFoundError(entity=TOPIC_ENTITY)

    if request.name is not None:
        duplicate = await translation_repo.find_by_name(
            request.name, exclude_topic_key=key
        )
        if duplicate is not None:
            set_wide_event_fields(topic_conflict="name")
            raise ConflictError(
                "errors.duplicate_name", entity=TOPIC_ENTITY, name=request.name
            )

    if request.description is not None:
        topic.description = request.description
    if request.enabled is not None:
        topic.enabled = request.enabled

    if request.name is not None or request.description is not None:
        translation = await translation_repo.get_for_topic(key, lang)
        if translation is None:
            if request.name is None:
                raise ValidationError(
                    "errors.translation_name_required", language=lang
                )
            await translation_repo.create(
                topic_key=key,
                lang=lang,
                name=request.name,
                description=request.description,
            )
        else:
            if request.name is not None:
                translation.name = request.name
            if request.description is not None:
                translation.description = request.description

    await db.flush()

    set_wide_event_fields(topic_key=key, topic_lang=lang)
    logger.info("topic.updated", topic_key=key, lang=lang)
    return await find_one(db, key, lang)


async def _ensure_not_linked(db: AsyncSession, keys: Sequence[str]) -> None:
    """Raise ConflictError if any audio or video references one of ``keys``."""
    link_repo = TopicLinkRepository(db)
    message_key = "errors.linked_one" if len(keys) == 1 else "errors.linked_many"

    for linked, check in (
        ("main.entity.audio", link_repo.audio_linked),
        ("main.entity.video", link_repo.video_linked),
    ):
        if await check(keys):
            set_wide_event_fields(topic_delete_blocked_by=linked.rsplit(".", 1)[-1])
            logger.info("topic.delete.blocked", topic_keys=list(keys), linked=linked)
            raise ConflictError(message_key, linked=linked)


@track_operation("topic_remove")
async def remove(db: AsyncSession, key: str) -> None:
    """Soft-delete a topic and all its translations.

    Raises:
        NotFoundError: The topic does not exist.
        ConflictError: An audio or video is linked to the topic.
    """
    topic_repo = TopicRepository(db)

    if await topic_repo.get_by_key(key) is None:
        raise NotFoundError(entity=TOPIC_ENTITY)

    await _ensure_not_linked(db, [key])

    await topic_repo.soft_delete([key])
    await TopicTranslationRepository(db).soft_delete_for_topics([key])

    set_wide_event_fields(topic_key=key)
    logger.info("topic.deleted", topic_key=key)


@track_operation("topic_remove_multi")
async def remove_multi(db: AsyncSession, keys: Sequence[str]) -> int:
    """Soft-delete every live topic in ``keys`` and their translations.

    Returns:
        Number of topics deleted.

    Raises:
        ConflictError: An audio or video is linked to one of the topics.
        NotFoundError: None of the keys matched a live topic.
    """
    keys = list(dict.fromkeys(keys))
    if not keys:
        raise NotFoundError(entity=TOPIC_ENTITY)

    await _ensure_not_linked(db, keys)

    affected = await TopicRepository(db).soft_delete(keys)
    if not affected:
        raise NotFoundError(entity=TOPIC_ENTITY)
    await TopicTranslationRepository(db).soft_delete_for_topics(keys)

    set_wide_event_fields(topic_keys_requested=len(keys), topics_deleted=affected)
    logger.info("topic.deleted.bulk", requested=len(keys), affected=affected)
    return affected


@track_operation("topic_find_all_client")
async def find_all_by_client_no_pagination(
    db: AsyncSession, lang: str, enabled: bool | None = None
) -> list[Topic]:
    return await TopicRepository(db).find_all(TopicQuery(lang=lang, enabled=enabled))


@track_operation("topic_paginate_client")
async def find_all_by_client_pagination(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    lang: str,
    enabled: bool | None = None,
    route: str | None = None,
) -> tuple[Sequence[Topic], PaginationMeta, PaginationLinks]:
    query = TopicQuery(lang=lang, enabled=enabled)
    return await TopicRepository(db).paginate(
        query, page=page, limit=limit, route=route
    )


@track_operation("topic_feature_topics")
async def find_feature_topics(db: AsyncSession, lang: str) -> list[FeatureTopicRow]:
    """Most-selected live topics, named in ``lang`` where a translation exists."""
    return await TopicRepository(db).most_selected(lang, FEATURE_TOPICS_LIMIT)
