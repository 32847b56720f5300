"""Core infrastructure for the Catalog Admin API: settings, database,
errors, i18n, logging, telemetry and rate limiting.

Shortcuts for the most common imports:
    from core import get_logger, set_wide_event_fields
"""

from core.logger import configure_logging, get_logger
from core.wide_event import get_wide_event, set_wide_event_fields

__all__ = [
    "configure_logging",
    "get_logger",
    "get_wide_event",
    "set_wide_event_fields",
]
