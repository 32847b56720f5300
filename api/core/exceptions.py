"""Domain exceptions raised by services.

Each exception carries a message key into the locale catalogs plus the
parameters for that message. The application-level handler in main.py
localizes the message for the request language and maps the exception type
to an HTTP status.
"""

from typing import Any


class CatalogError(Exception):
    """Base exception for all catalog domain errors."""

    status_code = 500
    code = "error"
    default_message_key = "errors.unexpected"

    def __init__(self, message_key: str | None = None, **params: Any) -> None:
        self.message_key = message_key or self.default_message_key
        self.params = params
        super().__init__(f"{self.message_key} {params}" if params else self.message_key)


class ValidationError(CatalogError):
    """Raised when a well-formed request is semantically incomplete."""

    status_code = 400
    code = "validation_error"
    default_message_key = "errors.validation"


class NotFoundError(CatalogError):
    """Raised when a requested resource is not found."""

    status_code = 404
    code = "not_found"
    default_message_key = "errors.not_found"


class ConflictError(CatalogError):
    """Raised on duplicates or when a delete is blocked by live references."""

    status_code = 409
    code = "conflict"
    default_message_key = "errors.conflict"
