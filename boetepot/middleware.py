from starlette.types import ASGIApp, Message, Receive, Scope, Send
import uuid

from boetepot.core.logging import request_id_ctx_var

REQUEST_ID_HEADER = b"x-request-id"


class CorrelationIdMiddleware:
    """Attach or generate an X-Request-ID for each request and set it on a contextvar
    so log records can include it via RequestIdFilter.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        # Only act on HTTP requests
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = headers.get(REQUEST_ID_HEADER)
        if request_id is None:
            request_id = str(uuid.uuid4()).encode()
            scope["headers"] = list(scope.get("headers", [])) + [(REQUEST_ID_HEADER, request_id)]

        token = request_id_ctx_var.set(request_id.decode("latin-1"))

        async def send_with_request_id(message: Message):
            if message["type"] == "http.response.start":
                message["headers"] = list(message.get("headers", [])) + [(REQUEST_ID_HEADER, request_id)]
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            request_id_ctx_var.reset(token)
