"""Sensitive-field catalog.

Maps a resource name to the field names removed from records when the
caller only holds PARTIAL access. Resources without an entry have no
sensitive fields.
"""

from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional


DEFAULT_SENSITIVE_FIELDS: Mapping[str, FrozenSet[str]] = MappingProxyType({
    "users": frozenset(["password", "passwordForTesting", "salary"]),
    "payrolls": frozenset(["salary", "amount", "bonus", "deductions"]),
    "roles": frozenset(),
})


class SensitiveFieldCatalog:
    """Read-only resource -> sensitive field names lookup."""

    def __init__(self, fields: Optional[Mapping[str, Iterable[str]]] = None):
        source = DEFAULT_SENSITIVE_FIELDS if fields is None else fields
        self._fields: Mapping[str, FrozenSet[str]] = MappingProxyType(
            {name: frozenset(names) for name, names in source.items()}
        )

    def fields_for(self, resource_name: str) -> FrozenSet[str]:
        """Sensitive field names for a resource (empty when unknown)."""
        return self._fields.get(resource_name, frozenset())

    def is_sensitive(self, resource_name: str, field_name: str) -> bool:
        return field_name in self.fields_for(resource_name)

    def redact(self, resource_name: str, record: Any) -> Any:
        """Copy of a record without its sensitive keys.

        Non-mapping values are returned untouched.
        """
        if not isinstance(record, Mapping):
            return record
        sensitive = self.fields_for(resource_name)
        return {key: value for key, value in record.items() if key not in sensitive}

    def with_overrides(self, overrides: Mapping[str, Iterable[str]]) -> "SensitiveFieldCatalog":
        """New catalog where the given resources' entries are replaced."""
        merged: Dict[str, Iterable[str]] = dict(self._fields)
        merged.update(overrides)
        return SensitiveFieldCatalog(merged)

    def resources(self) -> List[str]:
        return list(self._fields.keys())

    def __contains__(self, resource_name: str) -> bool:
        return resource_name in self._fields


default_catalog = SensitiveFieldCatalog()
