"""Product repository for database operations."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import Category, Product, ProductCategory, ProductStatus, Theme, utcnow
from repositories.utils import log_slow_query, paginate
from schemas import PaginationLinks, PaginationMeta


@dataclass(frozen=True)
class ProductQuery:
    """Active predicates of a product read. ``None`` disables a predicate."""

    key: str | None = None
    enabled: bool | None = None
    status: ProductStatus | None = None
    theme_key: str | None = None
    category_key: str | None = None
    search: str | None = None


class ProductRepository:
    """Repository for Product database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _apply(self, stmt: Select[Any], query: ProductQuery) -> Select[Any]:
        stmt = stmt.where(Product.deleted_at.is_(None))
        if query.key is not None:
            stmt = stmt.where(Product.key == query.key)
        if query.enabled is not None:
            stmt = stmt.where(Product.enabled == query.enabled)
        if query.status is not None:
            stmt = stmt.where(Product.status == query.status)
        if query.theme_key is not None:
            stmt = stmt.where(Product.theme_key == query.theme_key)
        if query.category_key is not None:
            stmt = stmt.where(
                exists().where(
                    ProductCategory.product_key == Product.key,
                    ProductCategory.category_key == query.category_key,
                )
            )
        if query.search:
            stmt = stmt.where(
                or_(
                    Product.name.icontains(query.search, autoescape=True),
                    Product.slug.contains(query.search.lower(), autoescape=True),
                )
            )
        return stmt

    def build_select(self, query: ProductQuery) -> Select[tuple[Product]]:
        return (
            self._apply(select(Product), query)
            .options(selectinload(Product.category_links))
            .order_by(Product.key.asc())
            .execution_options(populate_existing=True)
        )

    def build_count(self, query: ProductQuery) -> Select[tuple[int]]:
        return self._apply(select(func.count()).select_from(Product), query)

    @log_slow_query("product_get_by_key")
    async def get_by_key(
        self, key: str, *, include_deleted: bool = False
    ) -> Product | None:
        stmt = (
            select(Product)
            .where(Product.key == key)
            .options(selectinload(Product.category_links))
        )
        if not include_deleted:
            stmt = stmt.where(Product.deleted_at.is_(None))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @log_slow_query("product_get_by_name")
    async def get_by_name(
        self, name: str, *, exclude_key: str | None = None
    ) -> Product | None:
        """Any product row with ``name``, soft-deleted ones included.

        The column carries a unique constraint, so a deleted product's name
        stays taken.
        """
        stmt = select(Product).where(Product.name == name)
        if exclude_key is not None:
            stmt = stmt.where(Product.key != exclude_key)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    @log_slow_query("product_find_one")
    async def find_one(self, query: ProductQuery) -> Product | None:
        result = await self.db.execute(self.build_select(query))
        return result.scalars().first()

    @log_slow_query("product_paginate")
    async def paginate(
        self,
        query: ProductQuery,
        *,
        page: int,
        limit: int,
        route: str | None = None,
    ) -> tuple[Sequence[Product], PaginationMeta, PaginationLinks]:
        return await paginate(
            self.db,
            self.build_select(query),
            self.build_count(query),
            page=page,
            limit=limit,
            route=route,
        )

    async def create(self, product: Product, category_keys: Sequence[str]) -> Product:
        """Add a product with its category links (caller commits)."""
        product.category_links = [
            ProductCategory(category_key=category_key) for category_key in category_keys
        ]
        self.db.add(product)
        await self.db.flush()
        return product

    async def replace_categories(
        self, product: Product, category_keys: Sequence[str]
    ) -> None:
        """Make ``category_keys`` the product's category set.

        Links that stay are kept as-is so the unique (product, category) pair
        is never inserted twice; dropped links are removed as orphans.
        ``product.category_links`` must be loaded.
        """
        existing = {link.category_key: link for link in product.category_links}
        product.category_links = [
            existing.get(category_key) or ProductCategory(category_key=category_key)
            for category_key in category_keys
        ]
        await self.db.flush()

    @log_slow_query("product_soft_delete")
    async def soft_delete(self, key: str) -> int:
        result = await self.db.execute(
            update(Product)
            .where(Product.key == key, Product.deleted_at.is_(None))
            .values(deleted_at=utcnow())
        )
        return result.rowcount


class CatalogLookupRepository:
    """Existence checks for themes and categories referenced by products."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("theme_exists")
    async def theme_exists(self, theme_key: str) -> bool:
        result = await self.db.execute(
            select(
                exists().where(Theme.key == theme_key, Theme.deleted_at.is_(None))
            )
        )
        return bool(result.scalar())

    @log_slow_query("category_missing_keys")
    async def missing_categories(self, category_keys: Sequence[str]) -> list[str]:
        """Return the keys among ``category_keys`` with no live category."""
        if not category_keys:
            return []
        result = await self.db.execute(
            select(Category.key).where(
                Category.key.in_(category_keys), Category.deleted_at.is_(None)
            )
        )
        found = set(result.scalars().all())
        return [key for key in category_keys if key not in found]
