#!/usr/bin/env python3
"""CLI for Catalog Admin API management tasks.

Usage:
    python -m cli <command>

Commands:
    migrate [target]   Run database migrations (default: head)
    seed               Insert demo topics, themes, categories and products
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from alembic.config import Config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_DIR = Path(__file__).resolve().parent

# key -> {lang: name}
DEMO_TOPICS: dict[str, dict[str, str]] = {
    "sports": {"en": "Sports", "vi": "Thể thao"},
    "music": {"en": "Music", "vi": "Âm nhạc"},
    "travel": {"en": "Travel", "vi": "Du lịch"},
    "science": {"en": "Science", "vi": "Khoa học"},
    "cooking": {"en": "Cooking"},
}

DEMO_THEMES: dict[str, str] = {"city": "City", "space": "Space"}
DEMO_CATEGORIES: dict[str, str] = {"vehicles": "Vehicles", "buildings": "Buildings"}

# key, name, price, theme, categories
DEMO_PRODUCTS: list[tuple[str, str, int, str, list[str]]] = [
    ("fire-station", "Fire Station", 9999, "city", ["buildings", "vehicles"]),
    ("police-car", "Police Car", 1999, "city", ["vehicles"]),
    ("lunar-base", "Lunar Base", 14999, "space", ["buildings"]),
]


def get_alembic_config() -> Config:
    """Alembic config with an absolute script location (works from any cwd)."""
    cfg = Config(str(API_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(API_DIR / "alembic"))
    return cfg


def cmd_migrate(target: str = "head") -> int:
    """Run database migrations."""
    from alembic import command

    logger.info("Running database migrations to %s...", target)
    command.upgrade(get_alembic_config(), target)
    logger.info("Migrations complete")
    return 0


async def seed_database() -> dict[str, int]:
    """Insert demo rows that are not present yet. Returns counts per table."""
    from sqlalchemy import select

    from core.database import create_engine, create_session_maker, dispose_engine
    from models import (
        Category,
        Product,
        ProductCategory,
        Theme,
        Topic,
        TopicTranslation,
    )
    from repositories.utils import slugify

    created = {"topics": 0, "themes": 0, "categories": 0, "products": 0}
    engine = create_engine()
    try:
        session_maker = create_session_maker(engine)
        async with session_maker() as session:
            existing_topics = set((await session.execute(select(Topic.key))).scalars())
            for key, names in DEMO_TOPICS.items():
                if key in existing_topics:
                    continue
                session.add(
                    Topic(
                        key=key,
                        slug=slugify(key),
                        translations=[
                            TopicTranslation(lang=lang, name=name)
                            for lang, name in names.items()
                        ],
                    )
                )
                created["topics"] += 1

            existing_themes = set((await session.execute(select(Theme.key))).scalars())
            for key, name in DEMO_THEMES.items():
                if key not in existing_themes:
                    session.add(Theme(key=key, name=name))
                    created["themes"] += 1

            existing_categories = set(
                (await session.execute(select(Category.key))).scalars()
            )
            for key, name in DEMO_CATEGORIES.items():
                if key not in existing_categories:
                    session.add(Category(key=key, name=name))
                    created["categories"] += 1
            await session.flush()

            existing_products = set(
                (await session.execute(select(Product.key))).scalars()
            )
            for key, name, price, theme_key, category_keys in DEMO_PRODUCTS:
                if key in existing_products:
                    continue
                session.add(
                    Product(
                        key=key,
                        slug=slugify(key),
                        name=name,
                        price=price,
                        theme_key=theme_key,
                        category_links=[
                            ProductCategory(category_key=category_key)
                            for category_key in category_keys
                        ],
                    )
                )
                created["products"] += 1

            await session.commit()
    finally:
        await dispose_engine(engine)
    return created


def cmd_seed() -> int:
    """Insert demo data (idempotent)."""
    logger.info("Seeding demo data...")
    created = asyncio.run(seed_database())
    logger.info("Seed complete: %s", created)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Catalog Admin API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    migrate = subparsers.add_parser("migrate", help="Run database migrations")
    migrate.add_argument(
        "target",
        nargs="?",
        default="head",
        help="Target revision (default: head)",
    )
    subparsers.add_parser("seed", help="Insert demo data")

    args = parser.parse_args()

    if args.command == "migrate":
        return cmd_migrate(args.target)
    elif args.command == "seed":
        return cmd_seed()
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
