"""Inbound payload filtering.

Runs before business logic on request bodies:

1. Gate: the caller's primary role must not be blocked for the operation.
2. The best WRITE permission across all roles decides what happens:
   - full:    the payload passes through
   - partial: sensitive fields are stripped from the payload
   - self:    the payload may only target the caller
"""

from typing import TYPE_CHECKING, Any, Mapping, Optional

from ...common.logger import get_logger
from .catalog import SensitiveFieldCatalog, default_catalog
from .errors import AccessDenied, OwnershipViolation
from .ownership import targets_other_user
from .permissions import Caller, Operation, PermissionLevel
from .resolver import OperationLike, PermissionResolver, as_operation, role_level

if TYPE_CHECKING:
    from ..store.base import PermissionStore

logger = get_logger("request_filter")


class RequestFilter:
    """Filters inbound payloads by the caller's write permission."""

    def __init__(self, store: "PermissionStore", catalog: Optional[SensitiveFieldCatalog] = None):
        self.store = store
        self.catalog = catalog or default_catalog

    async def can_access_resource(
        self, role_name: Optional[str], resource_name: str, operation: OperationLike
    ) -> bool:
        """Check if a single role is anything but blocked for an operation."""
        resource = await self.store.get_resource_by_name(resource_name)
        level = role_level(resource, role_name, operation)
        logger.debug(
            f"Role {role_name} holds {level.value} for "
            f"{as_operation(operation).value} on '{resource_name}'"
        )
        return level is not PermissionLevel.BLOCKED

    async def check_primary_role(
        self, resource_name: str, caller: Caller, operation: OperationLike
    ) -> None:
        """Raise AccessDenied unless the caller's primary role may perform the operation."""
        operation = as_operation(operation)
        resource = await self.store.get_resource_by_name(resource_name)
        resolved = PermissionResolver(caller.roles).resolve_primary(resource, operation)
        logger.debug(
            f"Primary role {caller.primary_role} holds {resolved.level.value} for "
            f"{operation.value} on '{resource_name}'"
        )
        if resolved.is_blocked:
            logger.info(
                f"Caller {caller.id} denied {operation.value} on '{resource_name}'"
            )
            raise AccessDenied(
                f"insufficient permissions for {operation.value} on {resource_name}",
                resource_name,
                operation.value,
            )

    async def filter_input(
        self,
        resource_name: str,
        payload: Any,
        caller: Caller,
        operation: OperationLike = Operation.WRITE,
    ) -> Any:
        """Filter an inbound payload.

        Args:
            resource_name: Resource the request targets
            payload: Parsed request body
            caller: Authenticated caller
            operation: "write" or "delete"; only gates the primary role

        Returns:
            The payload to hand to business logic

        Raises:
            AccessDenied: If the caller may not write this resource
            OwnershipViolation: If a self-scoped caller targets another user
        """
        operation = as_operation(operation)
        level = await self._write_level(resource_name, caller, operation)

        if level is None or level is PermissionLevel.FULL:
            return payload

        if level is PermissionLevel.PARTIAL:
            filtered = self._redact(resource_name, payload)
            logger.debug(
                f"Stripped sensitive fields {sorted(self.catalog.fields_for(resource_name))} "
                f"from '{resource_name}' input"
            )
            return filtered

        # SELF
        records = payload if isinstance(payload, list) else [payload]
        if any(targets_other_user(record, caller) for record in records):
            logger.info(
                f"Caller {caller.id} attempted to modify another user's '{resource_name}' data"
            )
            raise OwnershipViolation(resource_name, operation.value)
        return payload

    async def check_raw_input(
        self,
        resource_name: str,
        caller: Caller,
        operation: OperationLike = Operation.WRITE,
    ) -> None:
        """Check a request body that could not be parsed into records.

        Such a body cannot be redacted or checked for ownership, so only
        callers with full write access may send it.

        Raises:
            AccessDenied: Unless the caller holds full write access
        """
        operation = as_operation(operation)
        level = await self._write_level(resource_name, caller, operation)
        if level is None or level is PermissionLevel.FULL:
            return
        logger.info(
            f"Caller {caller.id} sent an unparseable body to '{resource_name}' "
            f"without full write access"
        )
        raise AccessDenied(
            f"request body for {resource_name} must be JSON", resource_name, operation.value
        )

    async def _write_level(
        self, resource_name: str, caller: Caller, operation: Operation
    ) -> Optional[PermissionLevel]:
        """Gate the primary role, then resolve the best write level across all roles.

        Returns None when the resource has no permission matrix.
        """
        await self.check_primary_role(resource_name, caller, operation)

        resource = await self.store.get_resource_by_name(resource_name)
        if resource is None or not resource.is_configured:
            logger.info(f"Resource '{resource_name}' has no permission matrix, input unchanged")
            return None

        level = PermissionResolver(caller.roles).resolve(resource, Operation.WRITE).level
        if level is PermissionLevel.BLOCKED:
            logger.info(f"Caller {caller.id} has no write permission on '{resource_name}'")
            raise AccessDenied(
                f"no write permissions for {resource_name}", resource_name, operation.value
            )
        return level

    def _redact(self, resource_name: str, payload: Any) -> Any:
        if isinstance(payload, list):
            return [self.catalog.redact(resource_name, item) for item in payload]
        if isinstance(payload, Mapping):
            return self.catalog.redact(resource_name, payload)
        return payload
