import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, Uuid
from sqlalchemy.orm import relationship

from abacgate.db.base import Base


class ResourceRecord(Base):
    __tablename__ = "resources"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False, index=True)
    table_name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    # {"ROLE": {"canRead": "full", "canWrite": "self", "canDelete": "blocked"}}
    role_permissions = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    attributes = relationship("AttributeRecord", back_populates="resource", cascade="all, delete-orphan")
