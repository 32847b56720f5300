"""Per-request wide event: one dict of fields logged once at request end.

RequestTimingMiddleware opens the event, dependencies and services add
fields (``request_lang``, ``topic_key``, ``product_conflict``...), and the
middleware logs it as ``request.completed``. Error handlers add
``error_code`` so a failed request is explained by that single line.

Usage:
    from core.wide_event import set_wide_event_fields

    set_wide_event_fields(topic_key=key, topic_lang=lang)
"""

from contextvars import ContextVar
from typing import Any

# None outside a request (CLI, migrations)
_wide_event: ContextVar[dict[str, Any] | None] = ContextVar("wide_event", default=None)


def init_wide_event() -> dict[str, Any]:
    """Open a fresh event for the current context and return it."""
    event: dict[str, Any] = {}
    _wide_event.set(event)
    return event


def get_wide_event() -> dict[str, Any]:
    """The open event, or an empty throwaway dict when none is open."""
    event = _wide_event.get()
    return event if event is not None else {}


def clear_wide_event() -> None:
    _wide_event.set(None)


def set_wide_event_fields(**fields: Any) -> None:
    """Add fields to the open event. Does nothing when no event is open."""
    event = _wide_event.get()
    if event is not None:
        event.update(fields)
