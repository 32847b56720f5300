"""Tests for products_service."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError, NotFoundError
from models import Product, ProductStatus
from schemas import CreateProductRequest, ProductFilterParams, UpdateProductRequest
from services import products_service
from tests.factories import CategoryFactory, ProductFactory, ThemeFactory, create_async


@pytest.fixture
async def catalog(db_session: AsyncSession) -> AsyncSession:
    """A theme and two categories to attach products to."""
    await create_async(ThemeFactory, db_session, key="city")
    await create_async(CategoryFactory, db_session, key="vehicles")
    await create_async(CategoryFactory, db_session, key="buildings")
    return db_session


@pytest.mark.integration
class TestCreateProduct:
    async def test_creates_product_with_slug_and_categories(
        self, catalog: AsyncSession
    ):
        request = CreateProductRequest(
            key="Fire_Station",
            name="Fire Station",
            price=9999,
            theme_key="city",
            category_keys=["vehicles", "buildings", "vehicles"],
        )

        product = await products_service.create_product_admin(catalog, request)

        assert product.slug == "fire-station"
        assert product.status == ProductStatus.AVAILABLE
        assert sorted(product.category_keys) == ["buildings", "vehicles"]

    async def test_duplicate_key_conflicts(self, catalog: AsyncSession):
        await create_async(ProductFactory, catalog, key="police-car")

        with pytest.raises(ConflictError):
            await products_service.create_product_admin(
                catalog, CreateProductRequest(key="police-car", name="Brand New")
            )

    async def test_duplicate_name_conflicts(self, catalog: AsyncSession):
        await create_async(ProductFactory, catalog, key="police-car", name="Police Car")

        with pytest.raises(ConflictError) as exc_info:
            await products_service.create_product_admin(
                catalog, CreateProductRequest(key="police-car-2", name="Police Car")
            )

        assert exc_info.value.message_key == "errors.duplicate_name"

    async def test_unknown_theme_is_not_found(self, catalog: AsyncSession):
        with pytest.raises(NotFoundError) as exc_info:
            await products_service.create_product_admin(
                catalog,
                CreateProductRequest(key="rocket", name="Rocket", theme_key="space"),
            )

        assert exc_info.value.params == {"entity": "main.entity.theme"}

    async def test_unknown_category_is_not_found(self, catalog: AsyncSession):
        with pytest.raises(NotFoundError) as exc_info:
            await products_service.create_product_admin(
                catalog,
                CreateProductRequest(
                    key="rocket", name="Rocket", category_keys=["vehicles", "ships"]
                ),
            )

        assert exc_info.value.params == {"entity": "main.entity.category"}


@pytest.mark.integration
class TestFindProducts:
    async def test_paginates_with_absolute_links(self, catalog: AsyncSession):
        for key in ("c", "a", "b"):
            await create_async(ProductFactory, catalog, key=key)

        items, meta, links = await products_service.find_all_products_admin(
            catalog, page=1, limit=2, params=ProductFilterParams()
        )

        assert [p.key for p in items] == ["a", "b"]
        assert meta.total_items == 3
        assert links.next == "http://localhost:8000/api/admin/products?page=2&limit=2"

    async def test_find_one_respects_enabled(self, catalog: AsyncSession):
        await create_async(ProductFactory, catalog, key="hidden", enabled=False)

        with pytest.raises(NotFoundError):
            await products_service.find_one_product_admin(catalog, "hidden", True)
        product = await products_service.find_one_product_admin(catalog, "hidden")
        assert product.key == "hidden"


@pytest.mark.integration
class TestUpdateProduct:
    async def test_partial_update_keeps_other_fields(self, catalog: AsyncSession):
        await create_async(
            ProductFactory, catalog, key="kit", name="Kit", price=100, theme_key="city"
        )

        product = await products_service.update(
            catalog,
            "kit",
            UpdateProductRequest(price=250, status=ProductStatus.OUT_OF_STOCK),
        )

        assert product.key == "kit"
        assert product.name == "Kit"
        assert product.price == 250
        assert product.status == ProductStatus.OUT_OF_STOCK
        assert product.theme_key == "city"

    async def test_explicit_null_clears_theme(self, catalog: AsyncSession):
        await create_async(ProductFactory, catalog, key="kit", theme_key="city")

        product = await products_service.update(
            catalog, "kit", UpdateProductRequest.model_validate({"theme_key": None})
        )

        assert product.theme_key is None

    async def test_explicit_null_clears_description_and_image(
        self, catalog: AsyncSession
    ):
        await create_async(
            ProductFactory,
            catalog,
            key="kit",
            name="Kit",
            description="Bricks",
            image="https://cdn.example.com/kit.png",
        )

        product = await products_service.update(
            catalog,
            "kit",
            UpdateProductRequest.model_validate(
                {"description": None, "image": None, "name": None}
            ),
        )

        assert product.description is None
        assert product.image is None
        assert product.name == "Kit"

    async def test_category_keys_replace_the_set(self, catalog: AsyncSession):
        await products_service.create_product_admin(
            catalog,
            CreateProductRequest(key="kit", name="Kit", category_keys=["vehicles"]),
        )

        product = await products_service.update(
            catalog, "kit", UpdateProductRequest(category_keys=["buildings"])
        )

        assert product.category_keys == ["buildings"]

    async def test_name_taken_by_other_product_conflicts(self, catalog: AsyncSession):
        await create_async(ProductFactory, catalog, key="a", name="Alpha")
        await create_async(ProductFactory, catalog, key="b", name="Beta")

        with pytest.raises(ConflictError):
            await products_service.update(catalog, "b", UpdateProductRequest(name="Alpha"))

    async def test_missing_product_is_not_found(self, catalog: AsyncSession):
        with pytest.raises(NotFoundError):
            await products_service.update(catalog, "nope", UpdateProductRequest(price=1))


@pytest.mark.integration
class TestRemoveProduct:
    async def test_soft_deletes(self, catalog: AsyncSession):
        await create_async(ProductFactory, catalog, key="kit")

        await products_service.remove(catalog, "kit")

        row = (
            await catalog.execute(
                select(Product)
                .where(Product.key == "kit")
                .execution_options(populate_existing=True)
            )
        ).scalar_one()
        assert row.deleted_at is not None
        with pytest.raises(NotFoundError):
            await products_service.find_one_product_admin(catalog, "kit")

    async def test_missing_product_is_not_found(self, catalog: AsyncSession):
        with pytest.raises(NotFoundError):
            await products_service.remove(catalog, "nope")
