"""API dependencies shared by routers."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.db.deps import get_db
from app.core.exceptions import raise_bad_request, raise_not_found
from app.models.tenant import Tenant


def get_tenant_id(
    db: Annotated[Session, Depends(get_db)],
    x_tenant_id: Annotated[str | None, Header(alias="X-Tenant-ID")] = None,
) -> UUID:
    """Resolve the caller's tenant from the X-Tenant-ID header.

    Authentication is handled upstream; this only checks that the header
    names an existing, active tenant.

    Raises:
        APIException: 400 TENANT_REQUIRED if the header is missing or malformed,
            404 TENANT_NOT_FOUND if no active tenant has that ID
    """
    if not x_tenant_id:
        raise_bad_request("TENANT_REQUIRED", "X-Tenant-ID header is required")
    try:
        tenant_id = UUID(x_tenant_id)
    except ValueError:
        raise_bad_request(
            "TENANT_REQUIRED",
            "X-Tenant-ID header must be a valid UUID",
            details={"x_tenant_id": x_tenant_id},
        )

    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant or not tenant.is_active:
        raise_not_found("Tenant", str(tenant_id))
    return tenant_id


__all__ = ["get_db", "get_tenant_id"]
