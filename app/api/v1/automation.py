"""Automation router for rule management and event intake."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_tenant_id
from app.core.automation.emitters import emit
from app.core.automation.engine import AutomationEngine
from app.core.automation.rule_parser import RuleDefinitionError
from app.core.automation.service import AutomationService
from app.core.automation.types import ExecutionSummary, RuleRunResult, TriggerEvent
from app.core.db.deps import get_db
from app.core.exceptions import APIException
from app.core.messaging.service import MessagingService
from app.models.automation import Rule
from app.schemas.automation import (
    EventEmitRequest,
    RuleCreate,
    RuleResponse,
    RuleStatusUpdate,
    RuleUpdate,
)
from app.schemas.common import StandardListResponse, StandardResponse

router = APIRouter()


def get_automation_service(db: Annotated[Session, Depends(get_db)]) -> AutomationService:
    """Dependency to get AutomationService."""
    return AutomationService(db)


def get_messaging_service() -> MessagingService:
    """Dependency to get MessagingService."""
    return MessagingService()


def get_automation_engine(
    db: Annotated[Session, Depends(get_db)],
    messaging: Annotated[MessagingService, Depends(get_messaging_service)],
) -> AutomationEngine:
    """Dependency to get AutomationEngine."""
    return AutomationEngine(db, messaging=messaging)


def _rule_not_found(rule_id: UUID) -> APIException:
    return APIException(
        status_code=status.HTTP_404_NOT_FOUND,
        code="AUTOMATION_RULE_NOT_FOUND",
        message=f"Rule with ID {rule_id} not found",
    )


def _invalid_rule(error: RuleDefinitionError) -> APIException:
    return APIException(
        code="AUTOMATION_INVALID_RULE",
        message=str(error),
        details={"field": error.field} if error.field else None,
    )


@router.post(
    "/rules",
    response_model=StandardResponse[RuleResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create automation rule",
    description="Create a new automation rule for the caller's tenant.",
)
async def create_rule(
    rule_data: RuleCreate,
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> StandardResponse[RuleResponse]:
    """Create a new automation rule."""
    try:
        rule = service.create_rule(
            tenant_id=tenant_id,
            name=rule_data.name,
            description=rule_data.description,
            trigger=rule_data.trigger.model_dump(mode="json"),
            actions=[a.model_dump(mode="json", exclude_none=True) for a in rule_data.actions],
            is_active=rule_data.is_active,
        )
    except RuleDefinitionError as e:
        raise _invalid_rule(e) from e

    return StandardResponse(
        data=RuleResponse.model_validate(rule),
        meta={"message": "Rule created successfully"},
    )


@router.get(
    "/rules",
    response_model=StandardListResponse[RuleResponse],
    status_code=status.HTTP_200_OK,
    summary="List automation rules",
    description="List automation rules of the caller's tenant, newest first.",
)
async def list_rules(
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=20, ge=1, le=100, description="Page size"),
    active_only: bool = Query(default=False, description="Only return active rules"),
) -> StandardListResponse[RuleResponse]:
    """List all automation rules."""
    skip = (page - 1) * page_size
    rules = service.get_all_rules(
        tenant_id=tenant_id, active_only=active_only, skip=skip, limit=page_size
    )
    total = service.count_rules(tenant_id, active_only=active_only)
    total_pages = (total + page_size - 1) // page_size if total > 0 else 0

    return StandardListResponse(
        data=[RuleResponse.model_validate(rule) for rule in rules],
        meta={
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": total_pages,
        },
    )


@router.get(
    "/rules/{rule_id}",
    response_model=StandardResponse[RuleResponse],
    status_code=status.HTTP_200_OK,
    summary="Get automation rule",
    description="Get a specific automation rule by ID.",
)
async def get_rule(
    rule_id: UUID,
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> StandardResponse[RuleResponse]:
    """Get a specific automation rule."""
    rule = service.get_rule(rule_id, tenant_id)
    if not rule:
        raise _rule_not_found(rule_id)

    return StandardResponse(data=RuleResponse.model_validate(rule))


@router.put(
    "/rules/{rule_id}",
    response_model=StandardResponse[RuleResponse],
    status_code=status.HTTP_200_OK,
    summary="Update automation rule",
    description=(
        "Update an automation rule. A trigger or action list in the body "
        "replaces the stored one."
    ),
)
async def update_rule(
    rule_id: UUID,
    rule_data: RuleUpdate,
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> StandardResponse[RuleResponse]:
    """Update an automation rule."""
    trigger_dict = rule_data.trigger.model_dump(mode="json") if rule_data.trigger else None
    actions_dict = (
        [a.model_dump(mode="json", exclude_none=True) for a in rule_data.actions]
        if rule_data.actions is not None
        else None
    )

    try:
        rule = service.update_rule(
            rule_id=rule_id,
            tenant_id=tenant_id,
            name=rule_data.name,
            description=rule_data.description,
            trigger=trigger_dict,
            actions=actions_dict,
            is_active=rule_data.is_active,
        )
    except RuleDefinitionError as e:
        raise _invalid_rule(e) from e

    if not rule:
        raise _rule_not_found(rule_id)

    return StandardResponse(
        data=RuleResponse.model_validate(rule),
        meta={"message": "Rule updated successfully"},
    )


@router.patch(
    "/rules/{rule_id}/status",
    response_model=StandardResponse[RuleResponse],
    status_code=status.HTTP_200_OK,
    summary="Toggle automation rule",
    description="Activate or deactivate an automation rule.",
)
async def set_rule_status(
    rule_id: UUID,
    status_data: RuleStatusUpdate,
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> StandardResponse[RuleResponse]:
    """Toggle an automation rule."""
    rule = service.set_rule_active(rule_id, tenant_id, status_data.is_active)
    if not rule:
        raise _rule_not_found(rule_id)

    return StandardResponse(data=RuleResponse.model_validate(rule))


@router.delete(
    "/rules/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete automation rule",
    description="Delete an automation rule together with its trigger and actions.",
)
async def delete_rule(
    rule_id: UUID,
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
) -> None:
    """Delete an automation rule."""
    deleted = service.delete_rule(rule_id, tenant_id)
    if not deleted:
        raise _rule_not_found(rule_id)


@router.post(
    "/rules/{rule_id}/execute",
    response_model=StandardResponse[RuleRunResult],
    status_code=status.HTTP_200_OK,
    summary="Execute automation rule manually",
    description="Run one rule against a test event, without matching other rules.",
)
async def execute_rule(
    rule_id: UUID,
    event_data: EventEmitRequest,
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    service: Annotated[AutomationService, Depends(get_automation_service)],
    engine: Annotated[AutomationEngine, Depends(get_automation_engine)],
) -> StandardResponse[RuleRunResult]:
    """Execute an automation rule manually."""
    rule: Rule | None = service.get_rule(rule_id, tenant_id)
    if not rule:
        raise _rule_not_found(rule_id)

    test_event = TriggerEvent(type=event_data.type, tenant_id=tenant_id, data=event_data.data)
    result = await engine.execute_rule(rule, test_event)

    return StandardResponse(data=result)


@router.post(
    "/events",
    response_model=StandardResponse[ExecutionSummary],
    status_code=status.HTTP_200_OK,
    summary="Emit automation event",
    description="Hand a domain event for the caller's tenant to the automation engine.",
)
async def emit_event(
    event_data: EventEmitRequest,
    tenant_id: Annotated[UUID, Depends(get_tenant_id)],
    db: Annotated[Session, Depends(get_db)],
    messaging: Annotated[MessagingService, Depends(get_messaging_service)],
) -> StandardResponse[ExecutionSummary]:
    """Emit an event and return the execution summary."""
    summary = await emit(event_data.type, tenant_id, event_data.data, db=db, messaging=messaging)
    return StandardResponse(data=summary)
