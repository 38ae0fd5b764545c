"""Contact repository for data access operations."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.models.contact import Contact


class ContactRepository:
    """Repository for contact data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def get_by_id(self, contact_id: UUID, tenant_id: UUID) -> Contact | None:
        """Get contact by ID, filtered by tenant."""
        return (
            self.db.query(Contact)
            .filter(Contact.id == contact_id, Contact.tenant_id == tenant_id)
            .first()
        )
