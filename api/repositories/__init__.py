"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping routes thin and focused
on HTTP handling. Services orchestrate them; they never commit (``get_db``
commits once per request).
"""

from repositories.product_repository import (
    CatalogLookupRepository,
    ProductQuery,
    ProductRepository,
)
from repositories.topic_repository import (
    FeatureTopicRow,
    TopicLinkRepository,
    TopicQuery,
    TopicRepository,
    TopicTranslationRepository,
)
from repositories.utils import log_slow_query, paginate, slugify

__all__ = [
    "CatalogLookupRepository",
    "FeatureTopicRow",
    "ProductQuery",
    "ProductRepository",
    "TopicLinkRepository",
    "TopicQuery",
    "TopicRepository",
    "TopicTranslationRepository",
    "log_slow_query",
    "paginate",
    "slugify",
]
