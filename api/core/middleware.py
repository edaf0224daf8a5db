"""
Request body size limit.

Rejects a request before the multipart parser spools it to disk:
- a declared Content-Length over the limit gets a 413 without reading the body
- a body without a usable length (chunked) is counted while it is received
  and aborted with a 413 as soon as it crosses the limit
"""

from __future__ import annotations

from fastapi import HTTPException
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

# Boundaries and part headers around a single file field.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def _detail(max_bytes: int) -> str:
    return f"Request body too large. Max is {max_bytes} bytes."


class RequestSizeLimitMiddleware:
    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = None
        for name, value in scope.get("headers", []):
            if name == b"content-length":
                try:
                    length = int(value)
                except ValueError:
                    length = None
                break

        if length is not None and length > self.max_bytes:
            response = JSONResponse(status_code=413, content={"detail": _detail(self.max_bytes)})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    # FastAPI re-raises HTTPException from body parsing unchanged.
                    raise HTTPException(status_code=413, detail=_detail(self.max_bytes))
            return message

        await self.app(scope, limited_receive, send)
