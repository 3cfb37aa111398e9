"""ABAC module for abacgate.

This module defines the permission model, resolution rules, and the
request/response filters built on them.
"""

from .permissions import (
    Attribute,
    Caller,
    Operation,
    PermissionLevel,
    ResolvedPermission,
    Resource,
    ResourcePermission,
)
from .resolver import PermissionResolver, resolve, resolve_permission
from .catalog import SensitiveFieldCatalog, DEFAULT_SENSITIVE_FIELDS
from .errors import AccessDenied, OwnershipViolation, StoreLookupError
from .response_filter import ResponseFilter
from .request_filter import RequestFilter
from .service import ABACService, filter_output

__all__ = [
    "ABACService",
    "AccessDenied",
    "Attribute",
    "Caller",
    "DEFAULT_SENSITIVE_FIELDS",
    "Operation",
    "OwnershipViolation",
    "PermissionLevel",
    "PermissionResolver",
    "RequestFilter",
    "ResolvedPermission",
    "Resource",
    "ResourcePermission",
    "ResponseFilter",
    "SensitiveFieldCatalog",
    "StoreLookupError",
    "filter_output",
    "resolve",
    "resolve_permission",
]
