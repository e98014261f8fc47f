"""
Request body ceiling middleware.

Pure ASGI middleware that caps the size of request bodies on selected routes.
The declared Content-Length is checked up front; the ``receive`` channel is
also wrapped so a body that streams past the ceiling is cut off while it is
being read, before the multipart parser spools it to disk.

Usage:
    app.add_middleware(
        MaxBodySizeMiddleware,
        limits={r"^/api/v1/videos/[^/]+/video$": 1 << 30},
    )
"""

import logging
import re

from fastapi import HTTPException
from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.utils.file_validator import format_file_size


logger = logging.getLogger(__name__)


def _too_large_detail(limit: int) -> dict[str, str]:
    return {
        "error": "file_too_large",
        "message": f"Request body exceeds the {format_file_size(limit)} limit",
    }


class MaxBodySizeMiddleware:
    """
    Enforce per-route request body ceilings.

    Args:
        app: Downstream ASGI application
        limits: Mapping of path regex to maximum body size in bytes; the first
            matching pattern wins and unmatched paths are not limited.
    """

    def __init__(self, app: ASGIApp, limits: dict[str, int]) -> None:
        self.app = app
        self.limits = [(re.compile(pattern), limit) for pattern, limit in limits.items()]

    def limit_for_path(self, path: str) -> int | None:
        for pattern, limit in self.limits:
            if pattern.search(path):
                return limit
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        limit = self.limit_for_path(scope.get("path", ""))
        if limit is None:
            return await self.app(scope, receive, send)

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > limit:
            logger.info(
                "Rejected %s: declared body %s exceeds %d bytes",
                scope.get("path"),
                declared,
                limit,
            )
            response = JSONResponse(
                status_code=413,
                content={"detail": _too_large_detail(limit)},
            )
            return await response(scope, receive, send)

        received = 0

        async def _limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.info(
                        "Rejected %s: streamed body exceeds %d bytes", scope.get("path"), limit
                    )
                    # Raised inside the route so FastAPI's handler renders the 413
                    raise HTTPException(
                        status_code=413,
                        detail=_too_large_detail(limit),
                    )
            return message

        await self.app(scope, _limited_receive, send)
