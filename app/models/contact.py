"""Contact model for CRM contacts targeted by automation actions."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import relationship

from app.core.db.session import Base
from app.models.tag import contact_tags


class Contact(Base):
    """Contact model (tenant-scoped CRM contact)."""

    __tablename__ = "contacts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    tenant_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    stage = Column(String(50), nullable=True)  # LEAD, PROSPECT, CUSTOMER, ...
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    tags = relationship("Tag", secondary=contact_tags, back_populates="contacts")

    __table_args__ = (Index("ix_contacts_tenant_email", "tenant_id", "email"),)

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, name={self.name}, tenant_id={self.tenant_id})>"
