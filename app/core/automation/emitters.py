"""Event emitters: adapters the host application calls after a mutation.

Emitting is best-effort. Errors are logged and reported in the returned
summary, never raised into the caller's transaction.
"""

import logging
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.automation.engine import AutomationEngine
from app.core.automation.types import ExecutionSummary, TriggerEvent
from app.core.db.session import SessionLocal
from app.core.messaging.service import MessagingService
from app.models.automation import TriggerType

logger = logging.getLogger(__name__)


def _id(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value


async def emit(
    event_type: str | TriggerType,
    tenant_id: UUID | str,
    payload: dict[str, Any] | None = None,
    db: Session | None = None,
    messaging: MessagingService | None = None,
) -> ExecutionSummary:
    """Hand a domain event to the automation engine.

    Args:
        event_type: Trigger type
        tenant_id: Tenant the event belongs to
        payload: Event data
        db: Database session (a new one is opened and closed if omitted)
        messaging: Messaging service for email/SMS actions

    Returns:
        ExecutionSummary; on failure success=False and error is set
    """
    event_name = event_type.value if isinstance(event_type, TriggerType) else str(event_type)
    try:
        event = TriggerEvent(type=event_type, tenant_id=tenant_id, data=payload or {})
    except ValidationError as e:
        logger.error(f"Invalid automation event {event_name} for tenant {tenant_id}: {e}")
        return ExecutionSummary(
            success=False,
            event_type=event_name,
            tenant_id=str(tenant_id),
            error=f"Invalid event: {e.errors()[0]['msg']}",
        )

    owns_session = db is None
    session = db if db is not None else SessionLocal()
    try:
        engine = AutomationEngine(session, messaging=messaging)
        return await engine.process_event(event)
    except Exception as e:
        logger.error(
            f"Automation processing failed for {event_name} (tenant {tenant_id}): {e}",
            exc_info=True,
        )
        return ExecutionSummary(
            success=False,
            event_type=event_name,
            tenant_id=str(tenant_id),
            error=str(e),
        )
    finally:
        if owns_session:
            session.close()


async def trigger_contact_created(
    contact: Any, tenant_id: UUID | str, **kwargs: Any
) -> ExecutionSummary:
    """Emit CONTACT_CREATED for a newly created contact."""
    return await emit(
        TriggerType.CONTACT_CREATED,
        tenant_id,
        {
            "contactId": _id(contact.id),
            "contactName": contact.name,
            "contactEmail": contact.email,
            "contactStage": contact.stage,
        },
        **kwargs,
    )


async def trigger_tag_added(
    contact_id: UUID | str, tag: str, tenant_id: UUID | str, **kwargs: Any
) -> ExecutionSummary:
    """Emit TAG_ADDED when a tag is attached to a contact."""
    return await emit(
        TriggerType.TAG_ADDED,
        tenant_id,
        {"contactId": _id(contact_id), "tag": tag},
        **kwargs,
    )


async def trigger_pipeline_stage_changed(
    opportunity_id: UUID | str,
    old_stage_id: UUID | str | None,
    new_stage_id: UUID | str,
    tenant_id: UUID | str,
    **kwargs: Any,
) -> ExecutionSummary:
    """Emit PIPELINE_STAGE_CHANGED when an opportunity moves stage.

    `stageId` carries the destination stage so rules constrained on it match.
    """
    return await emit(
        TriggerType.PIPELINE_STAGE_CHANGED,
        tenant_id,
        {
            "opportunityId": _id(opportunity_id),
            "oldStageId": _id(old_stage_id),
            "newStageId": _id(new_stage_id),
            "stageId": _id(new_stage_id),
        },
        **kwargs,
    )


async def trigger_form_submitted(
    form_id: str, form_data: dict[str, Any], tenant_id: UUID | str, **kwargs: Any
) -> ExecutionSummary:
    """Emit FORM_SUBMITTED for a form submission."""
    return await emit(
        TriggerType.FORM_SUBMITTED,
        tenant_id,
        {"formId": _id(form_id), "formData": form_data},
        **kwargs,
    )


def _pipeline_payload(
    pipeline_id: Any, stage_id: Any, opportunity_id: Any, user_id: Any
) -> dict[str, Any]:
    return {
        "pipelineId": _id(pipeline_id),
        "stageId": _id(stage_id),
        "opportunityId": _id(opportunity_id),
        "userId": _id(user_id),
    }


async def trigger_card_created(
    pipeline_id: UUID | str,
    stage_id: UUID | str,
    opportunity_id: UUID | str,
    tenant_id: UUID | str,
    user_id: UUID | str | None = None,
    **kwargs: Any,
) -> ExecutionSummary:
    """Emit CARD_CREATED when a card is added to a pipeline."""
    return await emit(
        TriggerType.CARD_CREATED,
        tenant_id,
        _pipeline_payload(pipeline_id, stage_id, opportunity_id, user_id),
        **kwargs,
    )


async def trigger_stage_enter(
    pipeline_id: UUID | str,
    stage_id: UUID | str,
    opportunity_id: UUID | str,
    tenant_id: UUID | str,
    user_id: UUID | str | None = None,
    **kwargs: Any,
) -> ExecutionSummary:
    """Emit STAGE_ENTER when a card enters a pipeline stage."""
    return await emit(
        TriggerType.STAGE_ENTER,
        tenant_id,
        _pipeline_payload(pipeline_id, stage_id, opportunity_id, user_id),
        **kwargs,
    )
