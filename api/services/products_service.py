"""Product service for catalog administration."""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.exceptions import ConflictError, NotFoundError
from core.logger import get_logger
from core.telemetry import track_operation
from core.wide_event import set_wide_event_fields
from models import Product
from repositories.product_repository import (
    CatalogLookupRepository,
    ProductQuery,
    ProductRepository,
)
from repositories.utils import slugify
from schemas import (
    CreateProductRequest,
    PaginationLinks,
    PaginationMeta,
    ProductFilterParams,
    UpdateProductRequest,
)

logger = get_logger(__name__)

PRODUCT_ENTITY = "main.entity.product"
ADMIN_PRODUCTS_PATH = "/api/admin/products"

# Columns an explicit null clears; other fields ignore null.
CLEARABLE_FIELDS = frozenset({"description", "image"})


def admin_products_route() -> str:
    """Absolute base URL used for admin product pagination links."""
    return get_settings().public_base_url.rstrip("/") + ADMIN_PRODUCTS_PATH


async def _ensure_references_exist(
    db: AsyncSession, theme_key: str | None, category_keys: Sequence[str]
) -> None:
    lookup = CatalogLookupRepository(db)

    if theme_key is not None and not await lookup.theme_exists(theme_key):
        set_wide_event_fields(product_missing_theme=theme_key)
        raise NotFoundError(entity="main.entity.theme")

    missing = await lookup.missing_categories(category_keys)
    if missing:
        set_wide_event_fields(product_missing_categories=missing)
        raise NotFoundError(entity="main.entity.category")


@track_operation("product_create")
async def create_product_admin(
    db: AsyncSession, request: CreateProductRequest
) -> Product:
    """Create a product with its category links.

    Raises:
        ConflictError: The key or the name is already taken.
        NotFoundError: The theme or one of the categories does not exist.
    """
    product_repo = ProductRepository(db)

    if await product_repo.get_by_key(request.key, include_deleted=True) is not None:
        set_wide_event_fields(product_conflict="key")
        raise ConflictError(entity=PRODUCT_ENTITY)

    if await product_repo.get_by_name(request.name) is not None:
        set_wide_event_fields(product_conflict="name")
        raise ConflictError(
            "errors.duplicate_name", entity=PRODUCT_ENTITY, name=request.name
        )

    await _ensure_references_exist(db, request.theme_key, request.category_keys)

    product = Product(
        key=request.key,
        slug=slugify(request.key),
        name=request.name,
        price=request.price,
        description=request.description,
        image=request.image,
        enabled=request.enabled,
        status=request.status,
        theme_key=request.theme_key,
    )
    product = await product_repo.create(product, request.category_keys)

    set_wide_event_fields(product_key=product.key)
    logger.info(
        "product.created",
        product_key=product.key,
        categories=len(request.category_keys),
    )
    return product


@track_operation("product_find_all_admin")
async def find_all_products_admin(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    params: ProductFilterParams,
    route: str | None = None,
) -> tuple[Sequence[Product], PaginationMeta, PaginationLinks]:
    query = ProductQuery(
        enabled=params.enabled,
        status=params.status,
        theme_key=params.theme_key,
        category_key=params.category_key,
        search=params.search,
    )
    return await ProductRepository(db).paginate(
        query,
        page=page,
        limit=limit,
        route=route if route is not None else admin_products_route(),
    )


@track_operation("product_find_one_admin")
async def find_one_product_admin(
    db: AsyncSession, key: str, enabled: bool | None = None
) -> Product:
    product = await ProductRepository(db).find_one(
        ProductQuery(key=key, enabled=enabled)
    )
    if product is None:
        raise NotFoundError(entity=PRODUCT_ENTITY)
    return product


@track_operation("product_update")
async def update(db: AsyncSession, key: str, request: UpdateProductRequest) -> Product:
    """Partially update a product. The key never changes.

    ``theme_key``, ``description`` and ``image`` are cleared only when the body
    sends them explicitly as null; other null fields are left unchanged.
    ``category_keys`` replaces the whole category set when present.

    Raises:
        NotFoundError: The product, its new theme or a category is missing.
        ConflictError: Another product already uses the new name.
    """
    product_repo = ProductRepository(db)

    product = await product_repo.get_by_key(key)
    if product is None:
        raise NotFoundError(entity=PRODUCT_ENTITY)

    if request.name is not None and request.name != product.name:
        if await product_repo.get_by_name(request.name, exclude_key=key) is not None:
            set_wide_event_fields(product_conflict="name")
            raise ConflictError(
                "errors.duplicate_name", entity=PRODUCT_ENTITY, name=request.name
            )

    await _ensure_references_exist(db, request.theme_key, request.category_keys or [])

    fields = request.model_dump(
        exclude_unset=True, exclude={"theme_key", "category_keys"}
    )
    for field, value in fields.items():
        if value is not None or field in CLEARABLE_FIELDS:
            setattr(product, field, value)

    if "theme_key" in request.model_fields_set:
        product.theme_key = request.theme_key

    if request.category_keys is not None:
        await product_repo.replace_categories(product, request.category_keys)

    await db.flush()

    set_wide_event_fields(product_key=key)
    logger.info("product.updated", product_key=key, fields=sorted(request.model_fields_set))
    return await find_one_product_admin(db, key)


@track_operation("product_remove")
async def remove(db: AsyncSession, key: str) -> None:
    """Soft-delete a product. Its category links are kept.

    Raises:
        NotFoundError: The product does not exist.
    """
    if not await ProductRepository(db).soft_delete(key):
        raise NotFoundError(entity=PRODUCT_ENTITY)

    set_wide_event_fields(product_key=key)
    logger.info("product.deleted", product_key=key)
