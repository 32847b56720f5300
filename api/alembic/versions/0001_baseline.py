"""baseline topic and product catalog schema

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Topics with per-language translations, user/audio/video topic links,
themes, categories, products and product-category links.
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_baseline"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    # Topics - key is the immutable primary key
    op.create_table(
        "topics",
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(150), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("key"),
    )
    op.create_index("ix_topics_slug", "topics", ["slug"])

    op.create_table(
        "topic_translations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic_key", sa.String(100), nullable=False),
        sa.Column("lang", sa.String(10), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["topic_key"], ["topics.key"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "topic_key", "lang", name="uq_topic_translations_topic_lang"
        ),
    )
    op.create_index("ix_topic_translations_name", "topic_translations", ["name"])

    op.create_table(
        "user_topics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("topic_key", sa.String(100), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["topic_key"], ["topics.key"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "topic_key", name="uq_user_topics_user_topic"),
    )
    op.create_index("ix_user_topics_user_id", "user_topics", ["user_id"])
    op.create_index("ix_user_topics_topic_key", "user_topics", ["topic_key"])

    # Media links - a linked topic cannot be deleted
    for media in ("audio", "video"):
        table = f"{media}_topics"
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column(f"{media}_key", sa.String(100), nullable=False),
            sa.Column("topic_key", sa.String(100), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["topic_key"], ["topics.key"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                f"{media}_key", "topic_key", name=f"uq_{table}_{media}_topic"
            ),
        )
        op.create_index(f"ix_{table}_topic_key", table, ["topic_key"])

    op.create_table(
        "themes",
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("key"),
    )

    op.create_table(
        "categories",
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("key"),
    )

    op.create_table(
        "products",
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(150), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("price", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "status",
            sa.Enum(
                "AVAILABLE",
                "UNAVAILABLE",
                "OUT_OF_STOCK",
                name="product_status",
                native_enum=False,
            ),
            nullable=False,
            server_default="AVAILABLE",
        ),
        sa.Column("theme_key", sa.String(100), nullable=True),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["theme_key"], ["themes.key"]),
        sa.PrimaryKeyConstraint("key"),
        sa.UniqueConstraint("name", name="uq_products_name"),
    )
    op.create_index("ix_products_slug", "products", ["slug"])
    op.create_index("ix_products_theme_key", "products", ["theme_key"])

    op.create_table(
        "products_to_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_key", sa.String(100), nullable=False),
        sa.Column("category_key", sa.String(100), nullable=False),
        sa.ForeignKeyConstraint(
            ["product_key"], ["products.key"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["category_key"], ["categories.key"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "product_key", "category_key", name="uq_products_to_categories_pair"
        ),
    )
    op.create_index(
        "ix_products_to_categories_product_key",
        "products_to_categories",
        ["product_key"],
    )
    op.create_index(
        "ix_products_to_categories_category_key",
        "products_to_categories",
        ["category_key"],
    )


def downgrade() -> None:
    op.drop_table("products_to_categories")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_table("themes")
    op.drop_table("video_topics")
    op.drop_table("audio_topics")
    op.drop_table("user_topics")
    op.drop_table("topic_translations")
    op.drop_table("topics")
