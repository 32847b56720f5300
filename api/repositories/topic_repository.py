"""Topic repositories for database operations.

Reads are described by a ``TopicQuery`` listing the active predicates and
translated once into a SQLAlchemy statement by ``TopicRepository``.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, and_, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from models import AudioTopic, Topic, TopicTranslation, UserTopic, VideoTopic, utcnow
from repositories.utils import log_slow_query, paginate
from schemas import PaginationLinks, PaginationMeta


@dataclass(frozen=True)
class TopicQuery:
    """Active predicates of a topic read.

    ``lang`` restricts the inner-joined translations, so topics with no live
    translation in that language are excluded. ``None`` disables a predicate.
    """

    lang: str | None = None
    enabled: bool | None = None
    slug_contains: str | None = None
    key: str | None = None


@dataclass(frozen=True)
class FeatureTopicRow:
    topic_key: str
    name: str | None
    selections: int


class TopicRepository:
    """Repository for Topic database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _apply(self, stmt: Select[Any], query: TopicQuery) -> Select[Any]:
        join_on = [
            TopicTranslation.topic_key == Topic.key,
            TopicTranslation.deleted_at.is_(None),
        ]
        if query.lang is not None:
            join_on.append(TopicTranslation.lang == query.lang)

        stmt = stmt.join(TopicTranslation, and_(*join_on)).where(
            Topic.deleted_at.is_(None)
        )
        if query.key is not None:
            stmt = stmt.where(Topic.key == query.key)
        if query.enabled is not None:
            stmt = stmt.where(Topic.enabled == query.enabled)
        if query.slug_contains:
            stmt = stmt.where(Topic.slug.contains(query.slug_contains, autoescape=True))
        return stmt

    def build_select(self, query: TopicQuery) -> Select[tuple[Topic]]:
        """Topics with their matching translations loaded, ordered by key."""
        return (
            self._apply(select(Topic), query)
            .options(contains_eager(Topic.translations))
            .order_by(Topic.key.asc(), TopicTranslation.lang.asc())
            .execution_options(populate_existing=True)
        )

    def build_count(self, query: TopicQuery) -> Select[tuple[int]]:
        return self._apply(select(func.count()).select_from(Topic), query)

    @log_slow_query("topic_get_by_key")
    async def get_by_key(self, key: str, *, include_deleted: bool = False) -> Topic | None:
        """Get a topic row by key without translations."""
        stmt = select(Topic).where(Topic.key == key)
        if not include_deleted:
            stmt = stmt.where(Topic.deleted_at.is_(None))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @log_slow_query("topic_find_one")
    async def find_one(self, query: TopicQuery) -> Topic | None:
        result = await self.db.execute(self.build_select(query))
        return result.unique().scalars().first()

    @log_slow_query("topic_find_all")
    async def find_all(self, query: TopicQuery) -> list[Topic]:
        result = await self.db.execute(self.build_select(query))
        return list(result.unique().scalars().all())

    @log_slow_query("topic_paginate")
    async def paginate(
        self,
        query: TopicQuery,
        *,
        page: int,
        limit: int,
        route: str | None = None,
    ) -> tuple[Sequence[Topic], PaginationMeta, PaginationLinks]:
        return await paginate(
            self.db,
            self.build_select(query),
            self.build_count(query),
            page=page,
            limit=limit,
            route=route,
        )

    async def create(
        self,
        *,
        key: str,
        slug: str,
        description: str | None,
        enabled: bool,
        translations: list[TopicTranslation],
    ) -> Topic:
        """Add a topic and its translations to the session (caller commits)."""
        topic = Topic(
            key=key,
            slug=slug,
            description=description,
            enabled=enabled,
            translations=translations,
        )
        self.db.add(topic)
        await self.db.flush()
        return topic

    @log_slow_query("topic_soft_delete")
    async def soft_delete(self, keys: Sequence[str]) -> int:
        """Mark live topics deleted. Returns the number of rows affected."""
        if not keys:
            return 0
        result = await self.db.execute(
            update(Topic)
            .where(Topic.key.in_(keys), Topic.deleted_at.is_(None))
            .values(deleted_at=utcnow())
        )
        return result.rowcount

    @log_slow_query("topic_feature_topics")
    async def most_selected(self, lang: str, limit: int) -> list[FeatureTopicRow]:
        """Rank live topics by how many users selected them.

        The translation is left-joined, so a popular topic without a name in
        ``lang`` is still ranked (with ``name=None``).
        """
        selections = func.count(UserTopic.id)
        stmt = (
            select(UserTopic.topic_key, TopicTranslation.name, selections)
            .join(
                Topic,
                and_(Topic.key == UserTopic.topic_key, Topic.deleted_at.is_(None)),
            )
            .outerjoin(
                TopicTranslation,
                and_(
                    TopicTranslation.topic_key == UserTopic.topic_key,
                    TopicTranslation.lang == lang,
                    TopicTranslation.deleted_at.is_(None),
                ),
            )
            .group_by(UserTopic.topic_key, TopicTranslation.name)
            .order_by(selections.desc(), UserTopic.topic_key.asc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [
            FeatureTopicRow(topic_key=row[0], name=row[1], selections=row[2])
            for row in result.all()
        ]


class TopicTranslationRepository:
    """Repository for TopicTranslation database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("topic_translation_find_by_name")
    async def find_by_name(
        self, name: str, *, exclude_topic_key: str | None = None
    ) -> TopicTranslation | None:
        """Find a live translation with ``name`` in any language of any topic."""
        stmt = select(TopicTranslation).where(
            TopicTranslation.name == name,
            TopicTranslation.deleted_at.is_(None),
        )
        if exclude_topic_key is not None:
            stmt = stmt.where(TopicTranslation.topic_key != exclude_topic_key)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    @log_slow_query("topic_translation_get")
    async def get_for_topic(self, topic_key: str, lang: str) -> TopicTranslation | None:
        result = await self.db.execute(
            select(TopicTranslation).where(
                TopicTranslation.topic_key == topic_key,
                TopicTranslation.lang == lang,
                TopicTranslation.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        topic_key: str,
        lang: str,
        name: str,
        description: str | None = None,
    ) -> TopicTranslation:
        translation = TopicTranslation(
            topic_key=topic_key,
            lang=lang,
            name=name,
            description=description,
        )
        self.db.add(translation)
        await self.db.flush()
        return translation

    @log_slow_query("topic_translation_soft_delete")
    async def soft_delete_for_topics(self, topic_keys: Sequence[str]) -> int:
        """Mark every live translation of the given topics deleted."""
        if not topic_keys:
            return 0
        result = await self.db.execute(
            update(TopicTranslation)
            .where(
                TopicTranslation.topic_key.in_(topic_keys),
                TopicTranslation.deleted_at.is_(None),
            )
            .values(deleted_at=utcnow())
        )
        return result.rowcount


class TopicLinkRepository:
    """Lookups on rows that reference topics (audio/video/user selections)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("topic_audio_linked")
    async def audio_linked(self, topic_keys: Sequence[str]) -> bool:
        """True if any audio is linked to one of ``topic_keys``."""
        result = await self.db.execute(
            select(exists().where(AudioTopic.topic_key.in_(topic_keys)))
        )
        return bool(result.scalar())

    @log_slow_query("topic_video_linked")
    async def video_linked(self, topic_keys: Sequence[str]) -> bool:
        """True if any video is linked to one of ``topic_keys``."""
        result = await self.db.execute(
            select(exists().where(VideoTopic.topic_key.in_(topic_keys)))
        )
        return bool(result.scalar())
