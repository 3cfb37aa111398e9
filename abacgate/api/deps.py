from fastapi import HTTPException, Request, status

from abacgate.core.abac.permissions import Caller
from abacgate.core.abac.service import ABACService
from abacgate.core.store.base import PermissionStore


def get_current_caller(request: Request) -> Caller:
    """Get the authenticated caller set by AuthenticationMiddleware."""
    caller = getattr(request.state, "user", None)
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller


def get_abac_service(request: Request) -> ABACService:
    """Access-control service configured on the application."""
    return request.app.state.abac_service


def get_permission_store(request: Request) -> PermissionStore:
    return request.app.state.permission_store
