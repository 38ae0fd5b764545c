"""Automation schemas for API requests and responses."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.automation import ActionType, TriggerType


class TriggerSchema(BaseModel):
    """Trigger schema for automation rules."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"type": "PIPELINE_STAGE_CHANGED", "config": {"stageId": "stage-won"}}
        }
    )

    type: TriggerType = Field(..., description="Domain event the rule reacts to")
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Equality constraints on the event payload (empty matches all)",
    )


class ActionSchema(BaseModel):
    """Action schema for automation rules."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "SEND_EMAIL",
                "config": {"subject": "Welcome {{contactName}}", "body": "<p>Hi!</p>"},
                "order": 0,
            }
        }
    )

    type: ActionType = Field(..., description="Side effect to perform")
    config: dict[str, Any] = Field(default_factory=dict, description="Action-specific config")
    order: int | None = Field(None, description="Position in the action list (defaults to index)")


class RuleBase(BaseModel):
    """Base schema for automation rules."""

    name: str = Field(..., description="Rule name", min_length=1, max_length=255)
    description: str | None = Field(None, description="Rule description")
    is_active: bool = Field(default=True, description="Whether rule is active")
    trigger: TriggerSchema = Field(..., description="Trigger configuration")
    actions: list[ActionSchema] = Field(
        default_factory=list, description="Ordered list of actions to execute"
    )


class RuleCreate(RuleBase):
    """Schema for creating a rule."""

    pass


class RuleUpdate(BaseModel):
    """Schema for updating a rule.

    A trigger or action list, when present, replaces the stored one.
    """

    name: str | None = Field(None, description="Rule name", min_length=1, max_length=255)
    description: str | None = Field(None, description="Rule description")
    is_active: bool | None = Field(None, description="Whether rule is active")
    trigger: TriggerSchema | None = Field(None, description="Trigger configuration")
    actions: list[ActionSchema] | None = Field(None, description="List of actions to execute")


class RuleStatusUpdate(BaseModel):
    """Schema for toggling a rule."""

    is_active: bool = Field(..., description="New active status")


class TriggerResponse(BaseModel):
    """Schema for a stored trigger."""

    model_config = ConfigDict(from_attributes=True)

    type: str
    config: dict[str, Any]


class ActionResponse(BaseModel):
    """Schema for a stored action."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    config: dict[str, Any]
    order: int


class RuleResponse(BaseModel):
    """Schema for rule response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    name: str
    description: str | None
    is_active: bool
    trigger: TriggerResponse | None
    actions: list[ActionResponse]
    created_at: datetime
    updated_at: datetime


class EventEmitRequest(BaseModel):
    """Schema for emitting an event for the caller's tenant."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "TAG_ADDED",
                "data": {"contactId": "1f0c6a1e-4a4b-4c51-9d5b-5a2b1d3f1e20", "tag": "vip"},
            }
        }
    )

    type: TriggerType = Field(..., description="Trigger type")
    data: dict[str, Any] = Field(default_factory=dict, description="Event payload")


class FormSubmissionCreate(BaseModel):
    """Schema for a public form submission."""

    data: dict[str, Any] = Field(..., description="Submitted form fields")


class FormSubmissionResponse(BaseModel):
    """Schema for an accepted form submission."""

    form_id: str
    received: bool = True
    matched_rules: int = 0
    remaining: int = Field(..., description="Submissions left in the current window")
