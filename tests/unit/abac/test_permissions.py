"""Tests for the permission model."""

import pytest

from abacgate.core.abac.permissions import (
    Caller,
    Operation,
    PermissionLevel,
    Resource,
    ResourcePermission,
    parse_role_permissions,
)


class TestPermissionLevel:
    """Test level parsing."""

    def test_parse_known_levels(self):
        """Test each stored level string parses to its enum member."""
        assert PermissionLevel.parse("full") is PermissionLevel.FULL
        assert PermissionLevel.parse("partial") is PermissionLevel.PARTIAL
        assert PermissionLevel.parse("self") is PermissionLevel.SELF
        assert PermissionLevel.parse("blocked") is PermissionLevel.BLOCKED

    def test_parse_is_case_insensitive(self):
        """Test level strings ignore case and surrounding whitespace."""
        assert PermissionLevel.parse(" FULL ") is PermissionLevel.FULL
        assert PermissionLevel.parse("Self") is PermissionLevel.SELF

    def test_parse_unknown_fails_closed(self):
        """Test unrecognised values become blocked."""
        assert PermissionLevel.parse("admin") is PermissionLevel.BLOCKED
        assert PermissionLevel.parse(None) is PermissionLevel.BLOCKED
        assert PermissionLevel.parse(1) is PermissionLevel.BLOCKED


class TestResourcePermission:
    """Test per-role permission entries."""

    def test_defaults_are_blocked(self):
        """Test missing columns default to blocked."""
        permission = ResourcePermission()
        for operation in Operation:
            assert permission.level_for(operation) is PermissionLevel.BLOCKED

    def test_from_camel_case_dict(self):
        """Test stored camelCase matrices are understood."""
        permission = ResourcePermission.from_dict(
            {"canRead": "full", "canWrite": "self", "canDelete": "blocked"}
        )
        assert permission.can_read is PermissionLevel.FULL
        assert permission.can_write is PermissionLevel.SELF
        assert permission.can_delete is PermissionLevel.BLOCKED

    def test_from_snake_case_dict_with_missing_column(self):
        """Test snake_case keys and a missing column."""
        permission = ResourcePermission.from_dict({"can_read": "partial"})
        assert permission.can_read is PermissionLevel.PARTIAL
        assert permission.can_write is PermissionLevel.BLOCKED

    def test_to_dict(self):
        """Test serialisation uses camelCase level strings."""
        permission = ResourcePermission(PermissionLevel.FULL, PermissionLevel.PARTIAL)
        assert permission.to_dict() == {
            "canRead": "full",
            "canWrite": "partial",
            "canDelete": "blocked",
        }


class TestResource:
    """Test resource construction."""

    def test_unconfigured_matrix_stays_none(self):
        """Test a missing matrix is distinguishable from an empty one."""
        assert parse_role_permissions(None) is None
        assert parse_role_permissions({}) == {}
        assert not Resource(name="users").is_configured
        assert Resource(name="users", role_permissions={}).is_configured

    def test_from_dict(self):
        """Test building a resource from a stored mapping."""
        resource = Resource.from_dict({
            "id": 5,
            "name": "payrolls",
            "rolePermissions": {"USER": {"canRead": "self"}},
        })
        assert resource.id == "5"
        assert resource.table_name == "payrolls"
        assert resource.role_permissions["USER"].can_read is PermissionLevel.SELF


class TestCaller:
    """Test caller normalisation."""

    def test_roles_accept_names_and_mappings(self):
        """Test roles may be given as names or {"name": ...} records."""
        caller = Caller(id=1, roles=[{"name": "USER"}, "MANAGER"])
        assert caller.id == "1"
        assert caller.roles == ("USER", "MANAGER")
        assert caller.primary_role == "USER"

    def test_no_roles(self):
        """Test a caller without roles has no primary role."""
        assert Caller(id="1").primary_role is None

    def test_from_claims(self):
        """Test building a caller from token claims."""
        caller = Caller.from_claims({"sub": "42", "roles": ["ADMIN"]})
        assert caller == Caller(id="42", roles=("ADMIN",))

    def test_from_claims_with_single_role_string(self):
        """Test a roles claim holding one name is one role, not its letters."""
        caller = Caller.from_claims({"sub": "1", "roles": "ADMIN"})
        assert caller.roles == ("ADMIN",)
        assert caller.primary_role == "ADMIN"

    def test_single_role_name(self):
        """Test a bare role name or record is wrapped as one role."""
        assert Caller(id="1", roles="USER").roles == ("USER",)
        assert Caller(id="1", roles={"name": "MANAGER"}).roles == ("MANAGER",)

    def test_from_claims_without_subject(self):
        """Test claims with no identifier are rejected."""
        with pytest.raises(ValueError):
            Caller.from_claims({"roles": ["ADMIN"]})
