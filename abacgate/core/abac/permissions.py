"""Permission model for abacgate.

A protected collection (a Resource) carries a role permission matrix:
role name -> ResourcePermission, one PermissionLevel per operation.

Levels:
  - full:    unrestricted access
  - partial: access with sensitive fields redacted
  - self:    access restricted to records owned by the caller
  - blocked: no access

A role missing from the matrix is blocked for every operation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple


class PermissionLevel(str, Enum):
    """Access level granted to a role for one operation."""

    FULL = "full"
    PARTIAL = "partial"
    SELF = "self"
    BLOCKED = "blocked"

    @classmethod
    def parse(cls, value: Any) -> "PermissionLevel":
        """Parse a stored level, failing closed on anything unrecognised."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.BLOCKED
        return cls.BLOCKED


class Operation(str, Enum):
    """Operations a permission matrix distinguishes."""

    READ = "read"
    WRITE = "write"
    DELETE = "delete"


# Accepted spellings for each matrix column, stored JSON may be camelCase
_OPERATION_KEYS: Dict[Operation, Tuple[str, ...]] = {
    Operation.READ: ("can_read", "canRead"),
    Operation.WRITE: ("can_write", "canWrite"),
    Operation.DELETE: ("can_delete", "canDelete"),
}


class ResourcePermission(NamedTuple):
    """Read/write/delete levels for one role on one resource."""

    can_read: PermissionLevel = PermissionLevel.BLOCKED
    can_write: PermissionLevel = PermissionLevel.BLOCKED
    can_delete: PermissionLevel = PermissionLevel.BLOCKED

    def level_for(self, operation: Operation) -> PermissionLevel:
        if operation is Operation.READ:
            return self.can_read
        if operation is Operation.WRITE:
            return self.can_write
        return self.can_delete

    def to_dict(self) -> Dict[str, str]:
        return {
            "canRead": self.can_read.value,
            "canWrite": self.can_write.value,
            "canDelete": self.can_delete.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ResourcePermission":
        """Build from a stored mapping; missing columns are blocked."""
        levels = {}
        for operation, keys in _OPERATION_KEYS.items():
            raw = next((data[key] for key in keys if key in data), None)
            levels[operation] = PermissionLevel.parse(raw)
        return cls(
            can_read=levels[Operation.READ],
            can_write=levels[Operation.WRITE],
            can_delete=levels[Operation.DELETE],
        )


RolePermissionMatrix = Mapping[str, ResourcePermission]


def parse_role_permissions(
    raw: Optional[Mapping[str, Any]],
) -> Optional[Dict[str, ResourcePermission]]:
    """Parse a stored role permission matrix.

    None stays None so that an unconfigured resource can be told apart
    from a configured one that grants nothing.
    """
    if raw is None:
        return None
    matrix = {}
    for role_name, permission in raw.items():
        if isinstance(permission, ResourcePermission):
            matrix[role_name] = permission
        elif isinstance(permission, Mapping):
            matrix[role_name] = ResourcePermission.from_dict(permission)
    return matrix


@dataclass(frozen=True)
class Resource:
    """A protected collection and its role permission matrix."""

    name: str
    table_name: str = ""
    id: Optional[str] = None
    description: Optional[str] = None
    role_permissions: Optional[RolePermissionMatrix] = None

    @property
    def is_configured(self) -> bool:
        return self.role_permissions is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Resource":
        raw_matrix = data.get("role_permissions", data.get("rolePermissions"))
        return cls(
            name=data["name"],
            table_name=data.get("table_name", data.get("tableName", data["name"])),
            id=str(data["id"]) if data.get("id") is not None else None,
            description=data.get("description"),
            role_permissions=parse_role_permissions(raw_matrix),
        )


@dataclass(frozen=True)
class Attribute:
    """One field of a resource."""

    name: str
    field_name: str
    resource_id: Optional[str] = None
    is_sensitive: bool = False
    id: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class Caller:
    """The authenticated principal a request acts for.

    Roles are ordered; the first one is the primary role.
    """

    id: str
    roles: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "roles", _role_names(self.roles))

    @property
    def primary_role(self) -> Optional[str]:
        return self.roles[0] if self.roles else None

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Caller":
        """Build a caller from token claims or a user record.

        Accepts "sub" or "id" for the identifier, and roles given either as
        plain names or as mappings with a "name" key.
        """
        caller_id = claims.get("sub", claims.get("id"))
        if caller_id is None:
            raise ValueError("Caller claims carry no subject")
        return cls(id=str(caller_id), roles=claims.get("roles") or ())


def _role_names(roles: Any) -> Tuple[str, ...]:
    # A lone name or role record counts as one role
    if isinstance(roles, (str, Mapping)):
        roles = (roles,)
    names = []
    for role in roles or ():
        if isinstance(role, Mapping):
            role = role.get("name")
        elif not isinstance(role, str):
            role = getattr(role, "name", None)
        if role:
            names.append(str(role))
    return tuple(names)


class ResolvedPermission(NamedTuple):
    """Outcome of resolving one operation for one caller on one resource."""

    level: PermissionLevel
    role_name: Optional[str] = None

    @property
    def is_blocked(self) -> bool:
        return self.level is PermissionLevel.BLOCKED


BLOCKED = ResolvedPermission(PermissionLevel.BLOCKED)
