"""Permission resolution for abacgate.

Resolves the single applicable PermissionLevel for a caller's roles
against a resource's role permission matrix.

Resolution rules, scanning roles in the caller's order:
  - any role granting FULL wins immediately
  - a PARTIAL grant replaces an earlier SELF candidate
  - otherwise the first non-blocked grant is kept
  - no grant at all, or no matrix, resolves to BLOCKED
"""

from typing import Iterable, Optional, Union

from .permissions import (
    BLOCKED,
    Operation,
    PermissionLevel,
    Resource,
    ResolvedPermission,
)


OperationLike = Union[Operation, str]


def as_operation(operation: OperationLike) -> Operation:
    """Normalise an operation name ("read", "write", "delete")."""
    if isinstance(operation, Operation):
        return operation
    return Operation(str(operation).lower())


def role_level(
    resource: Optional[Resource], role_name: Optional[str], operation: OperationLike
) -> PermissionLevel:
    """Level a single role holds for an operation; absent means blocked."""
    if resource is None or not resource.is_configured or not role_name:
        return PermissionLevel.BLOCKED
    permission = resource.role_permissions.get(role_name)
    if permission is None:
        return PermissionLevel.BLOCKED
    return permission.level_for(as_operation(operation))


def resolve_permission(
    resource: Optional[Resource],
    role_names: Iterable[str],
    operation: OperationLike,
) -> ResolvedPermission:
    """Resolve the best level across all roles, remembering which role won."""
    if resource is None or not resource.is_configured:
        return BLOCKED

    operation = as_operation(operation)
    best: Optional[ResolvedPermission] = None

    for role_name in role_names:
        level = role_level(resource, role_name, operation)
        if level is PermissionLevel.BLOCKED:
            continue
        if level is PermissionLevel.FULL:
            return ResolvedPermission(level, role_name)
        if best is None or (
            level is PermissionLevel.PARTIAL and best.level is not PermissionLevel.PARTIAL
        ):
            best = ResolvedPermission(level, role_name)

    return best or BLOCKED


def resolve(
    resource: Optional[Resource],
    role_names: Iterable[str],
    operation: OperationLike,
) -> PermissionLevel:
    """Resolve the applicable level for a set of roles. Never raises on missing data."""
    return resolve_permission(resource, role_names, operation).level


class PermissionResolver:
    """Resolves permissions for one caller's ordered role list."""

    def __init__(self, role_names: Iterable[str]):
        """
        Initialize with the caller's roles.

        Args:
            role_names: Role names in the caller's order; the first is primary
        """
        self.role_names = tuple(role_names)

    @property
    def primary_role(self) -> Optional[str]:
        return self.role_names[0] if self.role_names else None

    def resolve(self, resource: Optional[Resource], operation: OperationLike) -> ResolvedPermission:
        """Best permission across every role the caller holds."""
        return resolve_permission(resource, self.role_names, operation)

    def resolve_primary(
        self, resource: Optional[Resource], operation: OperationLike
    ) -> ResolvedPermission:
        """Permission held by the primary role alone."""
        level = role_level(resource, self.primary_role, operation)
        if level is PermissionLevel.BLOCKED:
            return BLOCKED
        return ResolvedPermission(level, self.primary_role)

    def can_access(self, resource: Optional[Resource], operation: OperationLike) -> bool:
        """Check if any role grants something other than blocked."""
        return not self.resolve(resource, operation).is_blocked
