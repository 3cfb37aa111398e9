"""Authentication middleware for FastAPI.

Decodes an optional "Authorization: Bearer <token>" header into a Caller
and stores it on request.state.user. Missing or invalid tokens leave no
caller; such requests reach the handlers unfiltered.
"""

from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from abacgate.common.logger import get_logger
from abacgate.core.abac.permissions import Caller
from abacgate.core.config import Settings, get_settings
from abacgate.core.security import decode_access_token

logger = get_logger("auth")


def get_bearer_token(request: Request) -> Optional[str]:
    """Extract the bearer token from the Authorization header."""
    authorization = request.headers.get("authorization")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Attaches the authenticated caller, if any, to the request state."""

    def __init__(self, app: ASGIApp, settings: Optional[Settings] = None):
        super().__init__(app)
        self.settings = settings or get_settings()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        caller: Optional[Caller] = None
        token = get_bearer_token(request)
        if token:
            caller = decode_access_token(token, self.settings)
            if caller is None:
                logger.info(f"Invalid bearer token on {request.method} {request.url.path}")
        request.state.user = caller
        return await call_next(request)
