"""Default resource definitions for abacgate.

Defines the 3 standard resources and their role permission matrices for
the 3 standard roles:
1. ADMIN   - Full access everywhere
2. MANAGER - Reads everything with sensitive fields redacted
3. USER    - Sees and edits only their own user record and payrolls
"""

from typing import Dict, List

from .permissions import Attribute, PermissionLevel, Resource, ResourcePermission

FULL = PermissionLevel.FULL
PARTIAL = PermissionLevel.PARTIAL
SELF = PermissionLevel.SELF
BLOCKED = PermissionLevel.BLOCKED

ADMIN = "ADMIN"
MANAGER = "MANAGER"
USER = "USER"

DEFAULT_ROLE_NAMES = (ADMIN, MANAGER, USER)


def _build_matrix(**roles: tuple) -> Dict[str, ResourcePermission]:
    """Build a role permission matrix from ROLE=(read, write, delete) tuples."""
    return {role: ResourcePermission(*levels) for role, levels in roles.items()}


USERS_PERMISSIONS = _build_matrix(
    ADMIN=(FULL, FULL, FULL),
    MANAGER=(PARTIAL, PARTIAL, BLOCKED),
    USER=(SELF, SELF, BLOCKED),
)

ROLES_PERMISSIONS = _build_matrix(
    ADMIN=(FULL, FULL, FULL),
    MANAGER=(FULL, BLOCKED, BLOCKED),
    USER=(FULL, BLOCKED, BLOCKED),
)

PAYROLLS_PERMISSIONS = _build_matrix(
    ADMIN=(FULL, FULL, FULL),
    MANAGER=(PARTIAL, BLOCKED, BLOCKED),
    USER=(SELF, BLOCKED, BLOCKED),
)


DEFAULT_RESOURCES: Dict[str, dict] = {
    "users": {
        "table_name": "users",
        "description": "User accounts",
        "role_permissions": USERS_PERMISSIONS,
        "attributes": [
            ("email", False),
            ("salary", True),
            ("password", True),
        ],
    },
    "roles": {
        "table_name": "roles",
        "description": "Role definitions",
        "role_permissions": ROLES_PERMISSIONS,
        "attributes": [
            ("name", False),
            ("description", False),
        ],
    },
    "payrolls": {
        "table_name": "payrolls",
        "description": "Payroll entries",
        "role_permissions": PAYROLLS_PERMISSIONS,
        "attributes": [
            ("amount", True),
            ("description", False),
        ],
    },
}


def get_default_resource(name: str) -> Resource:
    """Get a default resource definition by name."""
    definition = DEFAULT_RESOURCES.get(name)
    if not definition:
        raise ValueError(f"Unknown default resource: {name}")
    return Resource(
        name=name,
        table_name=definition["table_name"],
        id=name,
        description=definition["description"],
        role_permissions=dict(definition["role_permissions"]),
    )


def get_default_attributes(name: str) -> List[Attribute]:
    """Get the attribute definitions of a default resource."""
    definition = DEFAULT_RESOURCES.get(name)
    if not definition:
        raise ValueError(f"Unknown default resource: {name}")
    return [
        Attribute(name=field_name, field_name=field_name, resource_id=name, is_sensitive=sensitive)
        for field_name, sensitive in definition["attributes"]
    ]


def get_all_default_resources() -> List[Resource]:
    return [get_default_resource(name) for name in DEFAULT_RESOURCES]
