"""Exceptions raised by the access-control core."""

from typing import Optional


class ABACError(Exception):
    """Base class for abacgate errors."""


class AccessDenied(ABACError):
    """Raised when the caller may not perform an operation on a resource.

    The message names the resource and operation only, never the roles or
    permission levels that were evaluated.
    """

    def __init__(
        self,
        message: str,
        resource_name: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.resource_name = resource_name
        self.operation = operation


class OwnershipViolation(AccessDenied):
    """Raised when a self-scoped caller targets another user's data."""

    def __init__(self, resource_name: Optional[str] = None, operation: Optional[str] = None):
        super().__init__("cannot modify data for other users", resource_name, operation)


class StoreLookupError(ABACError):
    """Raised by a permission store when a lookup fails.

    Distinct from "not found", which stores report by returning None.
    The core never catches it.
    """

    def __init__(self, message: str, resource_name: Optional[str] = None):
        super().__init__(message)
        self.resource_name = resource_name


class PipelineStateError(ABACError):
    """Raised when the interception pipeline is driven out of order."""

    def __init__(self, message: str, from_state, to_state):
        super().__init__(message)
        self.from_state = from_state
        self.to_state = to_state
