import uuid
from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from abacgate.db.base import Base


class AttributeRecord(Base):
    __tablename__ = "attributes"
    __table_args__ = (UniqueConstraint("resource_id", "field_name", name="uq_attribute_field"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    resource_id = Column(Uuid, ForeignKey("resources.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    field_name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    is_sensitive = Column(Boolean, default=False, nullable=False)

    # Relationships
    resource = relationship("ResourceRecord", back_populates="attributes")
