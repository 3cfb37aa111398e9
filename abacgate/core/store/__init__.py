"""Permission stores: where resources and their matrices are read from."""

from .base import PermissionStore, StoreLookupError
from .memory import InMemoryPermissionStore

__all__ = [
    "InMemoryPermissionStore",
    "PermissionStore",
    "StoreLookupError",
]
