"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.config import get_settings
from models import ProductStatus

T = TypeVar("T")

KEY_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_\-.]*$"


def _normalize_lang(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().lower()
    if value not in get_settings().languages:
        raise ValueError(
            f"Unsupported language {value!r}; expected one of "
            f"{', '.join(get_settings().languages)}"
        )
    return value


# =============================================================================
# Pagination
# =============================================================================


class PaginationMeta(BaseModel):
    item_count: int
    total_items: int
    items_per_page: int
    total_pages: int
    current_page: int


class PaginationLinks(BaseModel):
    """Query links for neighbouring pages. Empty string when not applicable."""

    first: str = ""
    previous: str = ""
    next: str = ""
    last: str = ""


class Page(BaseModel, Generic[T]):
    items: list[T]
    meta: PaginationMeta
    links: PaginationLinks = Field(default_factory=PaginationLinks)


# =============================================================================
# Topics
# =============================================================================


class TopicTranslationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    topic_key: str
    lang: str
    name: str
    description: str | None = None


class TopicResponse(BaseModel):
    """A topic with the translations loaded for the requested language."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    slug: str
    description: str | None = None
    enabled: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    translations: list[TopicTranslationResponse] = []


class CreateTopicRequest(BaseModel):
    """Create a topic together with its first translation."""

    key: str = Field(min_length=1, max_length=100, pattern=KEY_PATTERN)
    name: str = Field(min_length=1, max_length=255)
    lang: str | None = Field(default=None, description="Defaults to DEFAULT_LANGUAGE")
    description: str | None = Field(default=None, max_length=5000)
    enabled: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("lang")
    @classmethod
    def validate_lang(cls, v: str | None) -> str | None:
        return _normalize_lang(v)


class UpdateTopicRequest(BaseModel):
    """Partial topic update.

    ``key`` is not accepted: unknown fields are ignored, so a body that
    carries one leaves the key unchanged.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    lang: str | None = Field(default=None, description="Defaults to DEFAULT_LANGUAGE")
    description: str | None = Field(default=None, max_length=5000)
    enabled: bool | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("lang")
    @classmethod
    def validate_lang(cls, v: str | None) -> str | None:
        return _normalize_lang(v)


class FeatureTopicResponse(BaseModel):
    """One entry of the most-selected topics ranking."""

    topic_key: str
    name: str | None = None
    selections: int


class BulkDeleteResponse(BaseModel):
    affected: int


# =============================================================================
# Products
# =============================================================================


class CreateProductRequest(BaseModel):
    key: str = Field(min_length=1, max_length=100, pattern=KEY_PATTERN)
    name: str = Field(min_length=1, max_length=255)
    price: int | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, max_length=5000)
    image: str | None = Field(default=None, max_length=2048)
    enabled: bool = True
    status: ProductStatus = ProductStatus.AVAILABLE
    theme_key: str | None = Field(default=None, max_length=100)
    category_keys: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("category_keys")
    @classmethod
    def dedupe_categories(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(k.strip() for k in v if k.strip()))


class UpdateProductRequest(BaseModel):
    """Partial product update. ``category_keys`` replaces the whole set when given."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    price: int | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, max_length=5000)
    image: str | None = Field(default=None, max_length=2048)
    enabled: bool | None = None
    status: ProductStatus | None = None
    theme_key: str | None = Field(default=None, max_length=100)
    category_keys: list[str] | None = Field(default=None, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("category_keys")
    @classmethod
    def dedupe_categories(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return list(dict.fromkeys(k.strip() for k in v if k.strip()))


class ProductFilterParams(BaseModel):
    """Optional filters for the admin product list."""

    enabled: bool | None = None
    status: ProductStatus | None = None
    theme_key: str | None = None
    category_key: str | None = None
    search: str | None = Field(default=None, max_length=255)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    slug: str
    name: str
    image: str | None = None
    price: int | None = None
    description: str | None = None
    enabled: bool
    status: ProductStatus
    theme_key: str | None = None
    category_keys: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


# =============================================================================
# Health / errors
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


class PoolStatusResponse(BaseModel):
    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class DetailedHealthResponse(BaseModel):
    status: str
    service: str
    database: bool
    pool: PoolStatusResponse | None = None


class ErrorResponse(BaseModel):
    """Body returned for domain errors (404/409/400)."""

    detail: str
    code: str
