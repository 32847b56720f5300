"""Integration tests for the client topic routes."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tests.factories import UserTopicFactory, create_async, create_topic_async


@pytest.fixture
async def seeded(session_maker: async_sessionmaker[AsyncSession]):
    async with session_maker() as session:
        await create_topic_async(
            session, key="sports", names={"en": "Sports", "vi": "Thể thao"}
        )
        await create_topic_async(session, key="music", names={"en": "Music"})
        await create_topic_async(
            session, key="hidden", enabled=False, names={"en": "Hidden"}
        )
        for topic_key, count in (("music", 2), ("sports", 1)):
            for _ in range(count):
                await create_async(UserTopicFactory, session, topic_key=topic_key)
        await session.commit()


@pytest.mark.integration
class TestListClientTopics:
    async def test_returns_plain_list(self, client: AsyncClient, seeded):
        response = await client.get("/api/topics", params={"enabled": True})

        assert response.status_code == 200
        assert [t["key"] for t in response.json()] == ["music", "sports"]

    async def test_uses_accept_language(self, client: AsyncClient, seeded):
        response = await client.get(
            "/api/topics", headers={"Accept-Language": "vi"}
        )

        assert [t["key"] for t in response.json()] == ["sports"]


@pytest.mark.integration
class TestPaginateClientTopics:
    async def test_links_are_absolute_and_keep_language(
        self, client: AsyncClient, seeded
    ):
        response = await client.get(
            "/api/topics/paginate", params={"limit": 1, "lang": "en"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["meta"]["total_items"] == 3
        assert data["meta"]["total_pages"] == 3
        assert (
            data["links"]["next"]
            == "http://localhost:8000/api/topics/paginate?lang=en&page=2&limit=1"
        )

    async def test_links_keep_enabled_filter(self, client: AsyncClient, seeded):
        response = await client.get(
            "/api/topics/paginate", params={"limit": 1, "enabled": "true"}
        )

        data = response.json()
        assert data["meta"]["total_items"] == 2
        assert data["links"]["next"] == (
            "http://localhost:8000/api/topics/paginate"
            "?lang=en&enabled=true&page=2&limit=1"
        )

    async def test_overlong_lang_falls_back_to_default(
        self, client: AsyncClient, seeded
    ):
        response = await client.get("/api/topics", params={"lang": "x" * 200})

        assert response.status_code == 200
        assert response.headers["content-language"] == "en"
        assert [t["key"] for t in response.json()] == ["hidden", "music", "sports"]


@pytest.mark.integration
class TestFeatureTopics:
    async def test_ranks_most_selected(self, client: AsyncClient, seeded):
        response = await client.get("/api/topics/feature", params={"lang": "vi"})

        assert response.status_code == 200
        assert response.json() == [
            {"topic_key": "music", "name": None, "selections": 2},
            {"topic_key": "sports", "name": "Thể thao", "selections": 1},
        ]
