"""Admin product catalog endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from starlette import status

from core.database import DbSession
from core.ratelimit import ADMIN_WRITE_LIMIT, limiter
from core.request_params import PageParams
from schemas import (
    CreateProductRequest,
    ErrorResponse,
    Page,
    ProductFilterParams,
    ProductResponse,
    UpdateProductRequest,
)
from services import products_service

router = APIRouter(prefix="/api/admin/products", tags=["products-admin"])


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse, "description": "Theme or category not found"},
        409: {"model": ErrorResponse, "description": "Key or name taken"},
    },
)
@limiter.limit(ADMIN_WRITE_LIMIT)
async def create_product(
    request: Request, body: CreateProductRequest, db: DbSession
) -> ProductResponse:
    product = await products_service.create_product_admin(db, body)
    return ProductResponse.model_validate(product)


@router.get("", response_model=Page[ProductResponse])
async def list_products(
    db: DbSession,
    paging: PageParams,
    params: Annotated[ProductFilterParams, Depends()],
) -> Page[ProductResponse]:
    """List live products ordered by key, with optional filters."""
    items, meta, links = await products_service.find_all_products_admin(
        db, page=paging.page, limit=paging.limit, params=params
    )
    return Page[ProductResponse](
        items=[ProductResponse.model_validate(product) for product in items],
        meta=meta,
        links=links,
    )


@router.get(
    "/{key}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def get_product(
    key: str, db: DbSession, enabled: bool | None = None
) -> ProductResponse:
    product = await products_service.find_one_product_admin(db, key, enabled)
    return ProductResponse.model_validate(product)


@router.patch(
    "/{key}",
    response_model=ProductResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Product not found"},
        409: {"model": ErrorResponse, "description": "Name taken"},
    },
)
@limiter.limit(ADMIN_WRITE_LIMIT)
async def update_product(
    request: Request, key: str, body: UpdateProductRequest, db: DbSession
) -> ProductResponse:
    product = await products_service.update(db, key, body)
    return ProductResponse.model_validate(product)


@router.delete(
    "/{key}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
@limiter.limit(ADMIN_WRITE_LIMIT)
async def delete_product(request: Request, key: str, db: DbSession) -> Response:
    """Soft-delete a product."""
    await products_service.remove(db, key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
