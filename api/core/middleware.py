"""ASGI middleware: security headers and the Content-Language header."""

from __future__ import annotations

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.wide_event import get_wide_event


class SecurityHeadersMiddleware:
    """Adds security headers to every response.

    The API only serves JSON, so the CSP denies everything; the Swagger and
    ReDoc pages (debug / ENABLE_DOCS only) are left without a CSP.
    """

    SECURITY_HEADERS: list[tuple[bytes, bytes]] = [
        (b"x-content-type-options", b"nosniff"),
        (b"x-frame-options", b"DENY"),
        (b"referrer-policy", b"no-referrer"),
        (b"strict-transport-security", b"max-age=31536000; includeSubDomains"),
        (b"permissions-policy", b"camera=(), microphone=(), geolocation=()"),
    ]
    API_CSP = (b"content-security-policy", b"default-src 'none'; frame-ancestors 'none'")
    DOCS_PREFIXES = ("/docs", "/redoc")

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        is_docs = scope.get("path", "").startswith(self.DOCS_PREFIXES)

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                headers.extend(self.SECURITY_HEADERS)
                if not is_docs:
                    headers.append(self.API_CSP)
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)


class ContentLanguageMiddleware:
    """Sets ``Content-Language`` to the language the request was served in.

    The language is the one ``core.request_params.get_request_language``
    recorded on the wide event; responses of routes without a language
    dependency get no header. Must run inside RequestTimingMiddleware.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                lang = get_wide_event().get("request_lang")
                if lang:
                    headers = list(message.get("headers", []))
                    headers.append((b"content-language", lang.encode()))
                    message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)
