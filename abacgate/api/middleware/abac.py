"""Access-control middleware for FastAPI.

Runs every mapped request through the interception pipeline:
- bodies of POST/PUT/PATCH requests are filtered before the handler sees
  them; a body that is not JSON needs full write access
- DELETE requests are gated on the caller's primary role
- successful JSON responses are filtered before they leave the service

Denials become a 403 with a generic detail message. Store failures are
logged and propagate as server errors.
"""

import json
from typing import Any, Callable, Optional, Tuple

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from abacgate.common.logger import get_logger
from abacgate.core.abac.errors import AccessDenied, StoreLookupError
from abacgate.core.pipeline.machine import InterceptionPipeline, RawBody
from abacgate.core.pipeline.mapper import BODY_METHODS

logger = get_logger("abac_middleware")

# Paths that are never filtered (health checks, docs)
EXCLUDED_PATHS = {
    "/health",
    "/healthz",
    "/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
}

# Headers recomputed when a body is re-encoded
_STALE_HEADERS = {b"content-length", b"content-type"}


def is_json_content(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _replace_request_body(request: Request, payload: Any) -> None:
    """Make downstream handlers read the filtered payload instead of the original."""
    body = json.dumps(payload).encode("utf-8")
    # Starlette >= 0.28 replays request._body to the app; pinned in pyproject.toml
    request._body = body
    headers = [
        (name, value) for name, value in request.scope["headers"]
        if name.lower() not in _STALE_HEADERS
    ]
    headers.append((b"content-type", b"application/json"))
    headers.append((b"content-length", str(len(body)).encode("latin-1")))
    request.scope["headers"] = headers


class ABACMiddleware(BaseHTTPMiddleware):
    """Applies the interception pipeline around every non-excluded request."""

    def __init__(self, app: ASGIApp, pipeline: InterceptionPipeline):
        super().__init__(app)
        self.pipeline = pipeline

    async def _read_body(self, request: Request) -> Tuple[bool, Any]:
        """Read the request body whatever its declared content type.

        Returns:
            (present, body) where body is the parsed JSON value, or RawBody
            when the bytes do not parse
        """
        if request.method not in BODY_METHODS:
            return False, None
        body_bytes = await request.body()
        if not body_bytes:
            return False, None
        try:
            return True, json.loads(body_bytes)
        except ValueError:
            logger.debug(f"Unparseable body on {request.method} {request.url.path}")
            return True, RawBody(body_bytes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip excluded paths
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        caller = getattr(request.state, "user", None)
        has_body, body = await self._read_body(request)

        try:
            interception = await self.pipeline.intercept(
                request.method, request.url.path, body, caller, has_body=has_body
            )
        except AccessDenied as e:
            logger.info(
                f"Denied {request.method} {request.url.path} "
                f"for caller {caller.id if caller else None}: {e.message}"
            )
            return JSONResponse(status_code=403, content={"detail": e.message})
        except StoreLookupError:
            logger.exception(f"Permission lookup failed for {request.method} {request.url.path}")
            raise

        if has_body and not isinstance(body, RawBody) and interception.body is not body:
            _replace_request_body(request, interception.body)

        response = await call_next(request)

        if caller is None or interception.route is None:
            return response
        if not 200 <= response.status_code < 300:
            return response
        if not is_json_content(response.headers.get("content-type")):
            return response

        chunks = [chunk async for chunk in response.body_iterator]
        raw = b"".join(
            chunk if isinstance(chunk, bytes) else chunk.encode("utf-8") for chunk in chunks
        )
        # Raw pairs keep repeated headers such as Set-Cookie
        kept_headers = [
            (name, value) for name, value in response.raw_headers
            if name.lower() not in _STALE_HEADERS
        ]
        if not raw:
            filtered_response = Response(status_code=response.status_code)
        else:
            try:
                filtered = await interception.finalize(json.loads(raw))
            except StoreLookupError:
                logger.exception(
                    f"Permission lookup failed for {request.method} {request.url.path}"
                )
                raise
            filtered_response = JSONResponse(content=filtered, status_code=response.status_code)

        filtered_response.raw_headers.extend(kept_headers)
        return filtered_response
