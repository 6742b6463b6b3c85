"""ASGI interceptors for the HTTP gateways.

Each class wraps an ASGI app and is itself an ASGI app, so they stack via
``app.add_middleware``. Starlette makes the last one added the outermost,
which means ``install`` adds them in reverse of the request order.
"""
from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .errors import AuthError
from .pipeline import API_KEY_HEADER, authenticate, trace

JSON_CONTENT_TYPE = "application/json"


def _operation(scope: Scope) -> str:
    operation = f"{scope['method']} {scope['path']}"
    query = scope.get("query_string") or b""
    if query:
        operation = f"{operation}?{query.decode('latin-1')}"
    return operation


class TracerMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        with trace(_operation(scope)):
            await self.app(scope, receive, send)


class ApiKeyMiddleware:
    """Reject requests whose X-Api-Key header does not match ``api_key``."""

    def __init__(self, app: ASGIApp, api_key: str):
        self.app = app
        self.api_key = api_key

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        headers = Headers(scope=scope)
        try:
            authenticate(self.api_key, headers.getlist(API_KEY_HEADER))
        except AuthError:
            response = Response(status_code=401, media_type=JSON_CONTENT_TYPE)
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)


class StandardHeadersMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers["Content-Type"] = JSON_CONTENT_TYPE
            await send(message)

        await self.app(scope, receive, send_with_headers)


def install(app, api_key: str | None = None) -> None:
    """Wrap ``app`` as tracer -> auth -> standard headers -> routes.

    With ``api_key=None`` the auth stage is left out; the HTTP-over-RPC
    gateway authenticates on the RPC side instead.
    """
    app.add_middleware(StandardHeadersMiddleware)
    if api_key is not None:
        app.add_middleware(ApiKeyMiddleware, api_key=api_key)
    app.add_middleware(TracerMiddleware)
