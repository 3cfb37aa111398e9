"""Database models for abacgate."""

from abacgate.db.models.resource import ResourceRecord
from abacgate.db.models.attribute import AttributeRecord

__all__ = [
    "ResourceRecord",
    "AttributeRecord",
]
