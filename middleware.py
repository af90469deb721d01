"""ASGI middleware that caps request body size.

A declared Content-Length over the limit is refused before the app runs.
Bodies without a declared length (chunked uploads) are counted as they
stream in; once the count passes the limit the app's own response is
discarded and 413 is sent instead.

Usage:
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=50 * 1024 * 1024)
"""

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class BodyTooLarge(Exception):
    pass


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(status_code=413, content={"message": "Request body too large"})
        await response(scope, receive, send)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = Headers(scope=scope).get("content-length")
        if length is not None:
            try:
                declared = int(length)
            except ValueError:
                response = JSONResponse(status_code=400, content={"message": "Invalid Content-Length header"})
                await response(scope, receive, send)
                return
            if declared > self.max_body_bytes:
                await self._reject(scope, receive, send)
                return
            # The server holds the body to the declared length.
            await self.app(scope, receive, send)
            return

        received = 0
        too_large = False
        response_started = False

        async def counting_receive() -> Message:
            nonlocal received, too_large
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    too_large = True
                    raise BodyTooLarge(f"Request body exceeds {self.max_body_bytes} bytes")
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if too_large:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, counting_receive, guarded_send)
        except Exception:
            # Whatever the app raised after the body was cut off is replaced by the 413.
            if not too_large:
                raise

        if too_large and not response_started:
            await self._reject(scope, receive, send)
