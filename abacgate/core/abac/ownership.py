"""Record ownership rules for SELF-scoped access.

Each resource that supports SELF access registers one rule:
  - IDENTITY:        the record is the caller (record id == caller id)
  - OWNER_REFERENCE: the record points at the caller through a foreign key

Resources without a rule own nothing, so SELF access to them yields no rows.
Identifiers are compared by their string form: a record id of 7 matches
caller id "7".
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple, Optional, Tuple

from .permissions import Caller


class OwnershipKind(str, Enum):
    IDENTITY = "identity"
    OWNER_REFERENCE = "owner_reference"


class OwnershipRule(NamedTuple):
    """How records of one resource are tied to a caller."""

    kind: OwnershipKind
    fields: Tuple[str, ...]

    def owns(self, record: Any, caller: Caller) -> bool:
        if not isinstance(record, Mapping):
            return False
        return any(same_id(record.get(name), caller.id) for name in self.fields)


OWNERSHIP_RULES: Mapping[str, OwnershipRule] = MappingProxyType({
    "users": OwnershipRule(OwnershipKind.IDENTITY, ("id",)),
    "payrolls": OwnershipRule(OwnershipKind.OWNER_REFERENCE, ("userId", "user_id")),
})

# Fields an inbound SELF write may use to target a user
WRITE_TARGET_FIELDS: Tuple[str, ...] = ("userId", "id")


def same_id(value: Any, caller_id: str) -> bool:
    return value is not None and str(value) == caller_id


def get_ownership_rule(resource_name: str) -> Optional[OwnershipRule]:
    return OWNERSHIP_RULES.get(resource_name)


def owns(resource_name: str, record: Any, caller: Caller) -> bool:
    """Check if a record belongs to the caller; unknown resources fail closed."""
    rule = get_ownership_rule(resource_name)
    if rule is None:
        return False
    return rule.owns(record, caller)


def targets_other_user(payload: Any, caller: Caller) -> bool:
    """Check if an inbound payload names a user other than the caller."""
    if not isinstance(payload, Mapping):
        return False
    for name in WRITE_TARGET_FIELDS:
        value = payload.get(name)
        if value is not None and not same_id(value, caller.id):
            return True
    return False
