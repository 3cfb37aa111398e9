"""Database seeding for abacgate.

Creates the default resources, their role permission matrices and
attribute metadata.
"""

import uuid
from typing import Dict

from sqlalchemy.orm import Session

from abacgate.db.models import AttributeRecord, ResourceRecord
from abacgate.core.abac.defaults import DEFAULT_RESOURCES


def seed_default_resources(db: Session) -> Dict[str, ResourceRecord]:
    """
    Create the default resources.

    Seeding is idempotent - existing resources are returned untouched.

    Args:
        db: Database session

    Returns:
        Dict mapping resource name to ResourceRecord
    """
    seeded = {}

    for name, config in DEFAULT_RESOURCES.items():
        existing = db.query(ResourceRecord).filter(ResourceRecord.name == name).first()

        if existing:
            seeded[name] = existing
            continue

        resource = ResourceRecord(
            id=uuid.uuid4(),
            name=name,
            table_name=config["table_name"],
            description=config["description"],
            role_permissions={
                role: permission.to_dict()
                for role, permission in config["role_permissions"].items()
            },
        )
        db.add(resource)

        for field_name, sensitive in config["attributes"]:
            db.add(AttributeRecord(
                id=uuid.uuid4(),
                resource_id=resource.id,
                name=field_name,
                field_name=field_name,
                is_sensitive=sensitive,
            ))

        seeded[name] = resource

    db.flush()
    return seeded
