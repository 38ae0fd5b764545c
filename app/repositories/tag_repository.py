"""Tag repository for data access operations."""

import logging
from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.tag import Tag, contact_tags

logger = logging.getLogger(__name__)


class TagRepository:
    """Repository for tag data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def get_tag_by_name(self, tenant_id: UUID, name: str) -> Tag | None:
        """Get tag by (tenant, name)."""
        return (
            self.db.query(Tag)
            .filter(Tag.tenant_id == tenant_id, Tag.name == name)
            .first()
        )

    def get_all_tags(self, tenant_id: UUID) -> list[Tag]:
        """Get all tags for a tenant."""
        return (
            self.db.query(Tag)
            .filter(Tag.tenant_id == tenant_id)
            .order_by(Tag.name)
            .all()
        )

    def upsert_tag(self, tenant_id: UUID, name: str) -> Tag:
        """Get the tag named `name` for the tenant, creating it if absent.

        The insert runs inside a SAVEPOINT; when a concurrent writer wins the
        race the unique (tenant_id, name) constraint fires and the existing
        row is fetched instead.
        """
        existing = self.get_tag_by_name(tenant_id, name)
        if existing:
            return existing

        try:
            with self.db.begin_nested():
                tag = Tag(tenant_id=tenant_id, name=name)
                self.db.add(tag)
            self.db.commit()
            return tag
        except IntegrityError:
            logger.debug(f"Tag '{name}' created concurrently for tenant {tenant_id}")
            tag = self.get_tag_by_name(tenant_id, name)
            if tag is None:
                raise
            return tag

    def contact_has_tag(self, contact_id: UUID, tag_id: UUID) -> bool:
        """Check whether the contact already carries the tag."""
        row = self.db.execute(
            select(contact_tags.c.tag_id).where(
                contact_tags.c.contact_id == contact_id,
                contact_tags.c.tag_id == tag_id,
            )
        ).first()
        return row is not None

    def attach_tag_to_contact(self, contact_id: UUID, tag_id: UUID) -> bool:
        """Attach a tag to a contact (set union).

        Returns:
            True if a new relation was created, False if it already existed
        """
        if self.contact_has_tag(contact_id, tag_id):
            return False

        try:
            with self.db.begin_nested():
                self.db.execute(
                    insert(contact_tags).values(contact_id=contact_id, tag_id=tag_id)
                )
            self.db.commit()
            return True
        except IntegrityError:
            # Attached concurrently; the relation exists either way
            return False

    def get_contact_tags(self, contact_id: UUID) -> list[Tag]:
        """Get all tags attached to a contact."""
        return (
            self.db.query(Tag)
            .join(contact_tags, contact_tags.c.tag_id == Tag.id)
            .filter(contact_tags.c.contact_id == contact_id)
            .order_by(Tag.name)
            .all()
        )
