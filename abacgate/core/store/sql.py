"""SQLAlchemy-backed permission store."""

import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ...common.logger import get_logger
from ...db.models import AttributeRecord, ResourceRecord
from ..abac.errors import StoreLookupError
from ..abac.permissions import Attribute, Resource, parse_role_permissions
from .base import PermissionStore

logger = get_logger("sql_store")


def to_resource(record: ResourceRecord) -> Resource:
    return Resource(
        name=record.name,
        table_name=record.table_name,
        id=str(record.id),
        description=record.description,
        role_permissions=parse_role_permissions(record.role_permissions),
    )


def to_attribute(record: AttributeRecord) -> Attribute:
    return Attribute(
        name=record.name,
        field_name=record.field_name,
        resource_id=str(record.resource_id),
        is_sensitive=bool(record.is_sensitive),
        id=str(record.id),
        description=record.description,
    )


def _parse_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    if value is None:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class SQLAlchemyPermissionStore(PermissionStore):
    """Reads resources and attributes from the database.

    Each lookup runs in its own short-lived session.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def get_resource_by_name(self, name: str) -> Optional[Resource]:
        db = self.session_factory()
        try:
            record = db.query(ResourceRecord).filter(ResourceRecord.name == name).first()
            return to_resource(record) if record else None
        except SQLAlchemyError as e:
            logger.error(f"Resource lookup failed for '{name}': {e}")
            raise StoreLookupError(f"Resource lookup failed for '{name}'", name) from e
        finally:
            db.close()

    async def get_attributes_by_resource(self, resource_id: str) -> List[Attribute]:
        parsed = _parse_uuid(resource_id)
        if parsed is None:
            return []
        db = self.session_factory()
        try:
            records = db.query(AttributeRecord).filter(AttributeRecord.resource_id == parsed).all()
            return [to_attribute(r) for r in records]
        except SQLAlchemyError as e:
            logger.error(f"Attribute lookup failed for resource {resource_id}: {e}")
            raise StoreLookupError(f"Attribute lookup failed for resource {resource_id}") from e
        finally:
            db.close()

    async def get_attribute_by_resource_and_field(
        self, resource_id: str, field_name: str
    ) -> Optional[Attribute]:
        parsed = _parse_uuid(resource_id)
        if parsed is None:
            return None
        db = self.session_factory()
        try:
            record = db.query(AttributeRecord).filter(
                AttributeRecord.resource_id == parsed,
                AttributeRecord.field_name == field_name,
            ).first()
            return to_attribute(record) if record else None
        except SQLAlchemyError as e:
            raise StoreLookupError(
                f"Attribute lookup failed for {resource_id}.{field_name}"
            ) from e
        finally:
            db.close()

    async def get_resources(self) -> List[Resource]:
        db = self.session_factory()
        try:
            return [to_resource(r) for r in db.query(ResourceRecord).order_by(ResourceRecord.name).all()]
        except SQLAlchemyError as e:
            raise StoreLookupError("Resource listing failed") from e
        finally:
            db.close()

    async def create_resource(self, resource: Resource) -> Resource:
        db = self.session_factory()
        try:
            record = ResourceRecord(
                id=_parse_uuid(resource.id) or uuid.uuid4(),
                name=resource.name,
                table_name=resource.table_name or resource.name,
                description=resource.description,
                role_permissions=(
                    {role: p.to_dict() for role, p in resource.role_permissions.items()}
                    if resource.role_permissions is not None
                    else None
                ),
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            return to_resource(record)
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreLookupError(f"Could not create resource '{resource.name}'", resource.name) from e
        finally:
            db.close()

    async def create_attribute(self, attribute: Attribute) -> Attribute:
        resource_id = _parse_uuid(attribute.resource_id)
        if resource_id is None:
            raise ValueError(f"Invalid resource id: {attribute.resource_id}")
        db = self.session_factory()
        try:
            record = AttributeRecord(
                id=_parse_uuid(attribute.id) or uuid.uuid4(),
                resource_id=resource_id,
                name=attribute.name,
                field_name=attribute.field_name,
                description=attribute.description,
                is_sensitive=attribute.is_sensitive,
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            return to_attribute(record)
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreLookupError(f"Could not create attribute '{attribute.field_name}'") from e
        finally:
            db.close()
