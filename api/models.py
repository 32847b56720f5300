"""SQLAlchemy models for the topic and product catalogs."""

from datetime import UTC, datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from core.database import Base


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class SoftDeleteMixin:
    """Mixin for rows that are marked deleted instead of removed.

    Live lookups must filter on ``deleted_at IS NULL`` explicitly.
    """

    @declared_attr
    def deleted_at(cls) -> Mapped[datetime | None]:
        return mapped_column(DateTime(timezone=True), nullable=True, default=None)


# =============================================================================
# Topics
# =============================================================================


class Topic(TimestampMixin, SoftDeleteMixin, Base):
    """Language-neutral topic row. ``key`` is immutable once created."""

    __tablename__ = "topics"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    slug: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    translations: Mapped[list["TopicTranslation"]] = relationship(
        back_populates="topic",
        order_by="TopicTranslation.lang",
    )


class TopicTranslation(TimestampMixin, SoftDeleteMixin, Base):
    """Localized name/description of a topic, one row per language."""

    __tablename__ = "topic_translations"
    __table_args__ = (
        UniqueConstraint("topic_key", "lang", name="uq_topic_translations_topic_lang"),
        Index("ix_topic_translations_name", "name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_key: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("topics.key"),
        nullable=False,
    )
    lang: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    topic: Mapped["Topic"] = relationship(back_populates="translations")


class UserTopic(TimestampMixin, Base):
    """A topic a user picked; drives the feature-topics ranking."""

    __tablename__ = "user_topics"
    __table_args__ = (
        UniqueConstraint("user_id", "topic_key", name="uq_user_topics_user_topic"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    topic_key: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("topics.key"),
        nullable=False,
        index=True,
    )


class AudioTopic(TimestampMixin, Base):
    """Links an audio to a topic. A linked topic cannot be deleted."""

    __tablename__ = "audio_topics"
    __table_args__ = (
        UniqueConstraint("audio_key", "topic_key", name="uq_audio_topics_audio_topic"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    audio_key: Mapped[str] = mapped_column(String(100), nullable=False)
    topic_key: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("topics.key"),
        nullable=False,
        index=True,
    )


class VideoTopic(TimestampMixin, Base):
    """Links a video to a topic. A linked topic cannot be deleted."""

    __tablename__ = "video_topics"
    __table_args__ = (
        UniqueConstraint("video_key", "topic_key", name="uq_video_topics_video_topic"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_key: Mapped[str] = mapped_column(String(100), nullable=False)
    topic_key: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("topics.key"),
        nullable=False,
        index=True,
    )


# =============================================================================
# Products
# =============================================================================


class ProductStatus(str, PyEnum):
    """Sale status of a product."""

    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class Theme(TimestampMixin, SoftDeleteMixin, Base):
    """Product line a product belongs to (one theme, many products)."""

    __tablename__ = "themes"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    products: Mapped[list["Product"]] = relationship(back_populates="theme")


class Category(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "categories"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    product_links: Mapped[list["ProductCategory"]] = relationship(
        back_populates="category"
    )


class Product(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("name", name="uq_products_name"),)

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    slug: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    status: Mapped[ProductStatus] = mapped_column(
        Enum(ProductStatus, name="product_status", native_enum=False),
        default=ProductStatus.AVAILABLE,
        nullable=False,
    )
    theme_key: Mapped[str | None] = mapped_column(
        String(100),
        ForeignKey("themes.key"),
        nullable=True,
        index=True,
    )

    theme: Mapped[Theme | None] = relationship(back_populates="products")
    category_links: Mapped[list["ProductCategory"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductCategory.category_key",
    )

    @property
    def category_keys(self) -> list[str]:
        return [link.category_key for link in self.category_links]


class ProductCategory(Base):
    """Association row between a product and a category."""

    __tablename__ = "products_to_categories"
    __table_args__ = (
        UniqueConstraint(
            "product_key", "category_key", name="uq_products_to_categories_pair"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_key: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("products.key", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_key: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("categories.key"),
        nullable=False,
        index=True,
    )

    product: Mapped["Product"] = relationship(back_populates="category_links")
    category: Mapped["Category"] = relationship(back_populates="product_links")
