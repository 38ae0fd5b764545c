"""Public form submission router."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from app.api.deps import get_tenant_id
from app.api.v1.automation import get_messaging_service
from app.core.automation.emitters import trigger_form_submitted
from app.core.db.deps import get_db
from app.core.exceptions import raise_too_many_requests
from app.core.messaging.service import MessagingService
from app.core.rate_limit import (
    RATE_LIMITS,
    SlidingWindowRateLimiter,
    get_client_identifier,
    get_rate_limiter,
)
from app.schemas.automation import FormSubmissionCreate, FormSubmissionResponse
from app.schemas.common import StandardResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/{form_id}/submissions",
    response_model=StandardResponse[FormSubmissionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Submit form",
    description=(
        "Accept a public form submission and emit FORM_SUBMITTED. "
        "Rate limited per client IP."
    ),
)
async def submit_form(
    form_id: str,
    submission: FormSubmissionCreate,
    request: Request,
    response: Response,
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    db: Annotated[Session, Depends(get_db)],
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
    messaging: Annotated[MessagingService, Depends(get_messaging_service)],
) -> StandardResponse[FormSubmissionResponse]:
    """Accept a form submission."""
    client_id = get_client_identifier(request.headers)
    if client_id == "unknown":
        client_id = get_remote_address(request)

    rule = RATE_LIMITS["FORM_SUBMISSION"]
    result = await limiter.check(f"form:{client_id}", rule.limit, rule.window_seconds)
    if not result.allowed:
        raise_too_many_requests(result.retry_after or 1)

    response.headers["X-RateLimit-Limit"] = str(rule.limit)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)

    summary = await trigger_form_submitted(
        form_id, submission.data, tenant_id, db=db, messaging=messaging
    )
    logger.info(
        f"Form {form_id} submitted for tenant {tenant_id}, "
        f"{summary.matched_rules} rule(s) matched"
    )

    return StandardResponse(
        data=FormSubmissionResponse(
            form_id=form_id,
            matched_rules=summary.matched_rules,
            remaining=result.remaining,
        )
    )
