"""Tests for the sensitive-field catalog and ownership rules."""

from abacgate.core.abac.catalog import (
    DEFAULT_SENSITIVE_FIELDS,
    SensitiveFieldCatalog,
    default_catalog,
)
from abacgate.core.abac.ownership import (
    OwnershipKind,
    get_ownership_rule,
    owns,
    targets_other_user,
)
from abacgate.core.abac.permissions import Caller


class TestSensitiveFieldCatalog:
    """Test SensitiveFieldCatalog class."""

    def test_default_entries(self):
        """Test the built-in sensitive fields."""
        assert default_catalog.fields_for("users") == {"password", "passwordForTesting", "salary"}
        assert default_catalog.fields_for("payrolls") == {"salary", "amount", "bonus", "deductions"}
        assert default_catalog.fields_for("roles") == frozenset()

    def test_unknown_resource_has_no_fields(self):
        """Test unknown resources redact nothing."""
        assert default_catalog.fields_for("reports") == frozenset()
        assert "reports" not in default_catalog
        assert default_catalog.redact("reports", {"salary": 1}) == {"salary": 1}

    def test_is_sensitive(self):
        """Test per-field lookups."""
        assert default_catalog.is_sensitive("users", "salary")
        assert not default_catalog.is_sensitive("users", "email")

    def test_redact_leaves_non_mappings(self):
        """Test non-record values are returned untouched."""
        assert default_catalog.redact("users", "salary") == "salary"

    def test_overrides_replace_entries(self):
        """Test with_overrides replaces only the named resources."""
        catalog = default_catalog.with_overrides({"users": ["ssn"], "reports": ["total"]})
        assert catalog.fields_for("users") == {"ssn"}
        assert catalog.fields_for("reports") == {"total"}
        assert catalog.fields_for("payrolls") == DEFAULT_SENSITIVE_FIELDS["payrolls"]
        assert default_catalog.fields_for("users") == DEFAULT_SENSITIVE_FIELDS["users"]

    def test_custom_catalog(self):
        """Test a catalog built from scratch."""
        catalog = SensitiveFieldCatalog({"users": ["salary"]})
        assert catalog.resources() == ["users"]
        assert catalog.redact("users", {"id": 1, "salary": 2, "password": 3}) == {
            "id": 1,
            "password": 3,
        }


class TestOwnership:
    """Test ownership predicates."""

    def test_users_owned_by_identity(self):
        """Test a user record belongs to the caller with the same id."""
        caller = Caller(id="7")
        assert get_ownership_rule("users").kind is OwnershipKind.IDENTITY
        assert owns("users", {"id": "7"}, caller)
        assert owns("users", {"id": 7}, caller)
        assert not owns("users", {"id": "8"}, caller)
        assert not owns("users", {"userId": "7"}, caller)

    def test_payrolls_owned_by_reference(self):
        """Test payroll ownership through either foreign key spelling."""
        caller = Caller(id="7")
        assert get_ownership_rule("payrolls").kind is OwnershipKind.OWNER_REFERENCE
        assert owns("payrolls", {"id": "1", "userId": "7"}, caller)
        assert owns("payrolls", {"id": "1", "user_id": "7"}, caller)
        assert not owns("payrolls", {"id": "7"}, caller)

    def test_unknown_resource_owns_nothing(self):
        """Test resources without a rule fail closed."""
        assert get_ownership_rule("reports") is None
        assert not owns("reports", {"id": "7", "userId": "7"}, Caller(id="7"))

    def test_non_mapping_records(self):
        """Test non-record values are never owned."""
        assert not owns("users", "7", Caller(id="7"))

    def test_targets_other_user(self):
        """Test inbound payload target detection."""
        caller = Caller(id="7")
        assert not targets_other_user({"name": "x"}, caller)
        assert not targets_other_user({"id": "7", "userId": 7}, caller)
        assert not targets_other_user({"id": None}, caller)
        assert targets_other_user({"id": "8"}, caller)
        assert targets_other_user({"userId": "8", "id": "7"}, caller)
