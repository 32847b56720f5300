"""Message translation backed by JSON locale catalogs.

Catalogs live in ``locales/<lang>.json`` and are nested dicts addressed by
dotted keys::

    {"main": {"entity": {"topic": "Topic"}}}  ->  t("main.entity.topic")

Lookups fall back to the default language, then to the key itself, so a
missing translation never breaks an error response.
"""

import json
from functools import lru_cache
from typing import Any

from core.config import get_settings
from core.logger import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=8)
def load_catalog(lang: str) -> dict[str, Any]:
    """Load and cache the catalog for one language. Empty if the file is absent."""
    path = get_settings().locales_dir_path / f"{lang}.json"
    if not path.exists():
        logger.warning("i18n.catalog.missing", lang=lang, path=str(path))
        return {}

    with open(path, encoding="utf-8") as f:
        return json.load(f)


def clear_catalog_cache() -> None:
    load_catalog.cache_clear()


def _lookup(catalog: dict[str, Any], key: str) -> str | None:
    node: Any = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def resolve_language(*candidates: str | None) -> str:
    """Return the first supported language among candidates, else the default.

    Candidates may be raw ``Accept-Language`` values such as
    ``"vi-VN,vi;q=0.9,en;q=0.8"``.
    """
    settings = get_settings()
    for candidate in candidates:
        if not candidate:
            continue
        for part in candidate.split(","):
            tag = part.split(";")[0].strip().lower()
            primary = tag.split("-")[0]
            if primary in settings.languages:
                return primary
    return settings.default_language


def t(key: str, lang: str | None = None, /, **params: Any) -> str:
    """Translate ``key`` into ``lang`` and fill ``{param}`` placeholders.

    Parameters that are themselves message keys are not translated; callers
    pass already-localized values (see ``localize_params``).
    """
    settings = get_settings()
    lang = lang or settings.default_language

    message = _lookup(load_catalog(lang), key)
    if message is None and lang != settings.default_language:
        message = _lookup(load_catalog(settings.default_language), key)
    if message is None:
        return key

    try:
        return message.format(**params)
    except (KeyError, IndexError):
        logger.warning("i18n.format.failed", key=key, lang=lang)
        return message


def localize_params(params: dict[str, Any], lang: str) -> dict[str, Any]:
    """Translate parameter values that look like message keys (``entity`` etc.)."""
    localized: dict[str, Any] = {}
    for name, value in params.items():
        if isinstance(value, str) and value.startswith("main."):
            localized[name] = t(value, lang)
        else:
            localized[name] = value
    return localized
