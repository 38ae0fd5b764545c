"""Typed events, configs and results for the automation engine."""

from collections.abc import Iterator, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.automation import ActionType, TriggerType

# Payload keys each emitter supplies for its trigger type
TRIGGER_PAYLOAD_KEYS: dict[TriggerType, tuple[str, ...]] = {
    TriggerType.CONTACT_CREATED: ("contactId", "contactName", "contactEmail", "contactStage"),
    TriggerType.TAG_ADDED: ("contactId", "tag"),
    TriggerType.PIPELINE_STAGE_CHANGED: (
        "opportunityId",
        "oldStageId",
        "newStageId",
        "stageId",
    ),
    TriggerType.FORM_SUBMITTED: ("formId", "formData"),
    TriggerType.STAGE_ENTER: ("pipelineId", "stageId", "opportunityId", "userId"),
    TriggerType.CARD_CREATED: ("pipelineId", "stageId", "opportunityId", "userId"),
}


class TriggerEvent(BaseModel):
    """Normalized, ephemeral representation of a domain occurrence."""

    type: TriggerType = Field(..., description="Trigger type")
    tenant_id: UUID = Field(..., description="Tenant the event belongs to")
    data: dict[str, Any] = Field(default_factory=dict, description="Emitter payload")


class ExecutionContext(Mapping[str, Any]):
    """Read-only data bag for one rule run: event data plus the tenant id.

    `tenantId` always comes from the event envelope, never from the payload.
    """

    def __init__(self, tenant_id: UUID, data: Mapping[str, Any] | None = None):
        values = dict(data or {})
        values["tenantId"] = str(tenant_id)
        self._values = MappingProxyType(values)
        self.tenant_id = tenant_id

    @classmethod
    def from_event(cls, event: TriggerEvent) -> "ExecutionContext":
        return cls(event.tenant_id, event.data)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def lookup(self, path: str) -> Any:
        """Get a value by dotted path (e.g. 'contact.email'), None if absent."""
        value: Any = self._values
        for part in path.split("."):
            if isinstance(value, Mapping) and part in value:
                value = value[part]
            else:
                return None
        return value

    def __repr__(self) -> str:
        return f"<ExecutionContext({dict(self._values)!r})>"


# Action configs, one model per action type


class ActionConfig(BaseModel):
    """Base for typed action configs (parsed from the stored JSON map)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SendEmailConfig(ActionConfig):
    to: str | None = None
    subject: str = ""
    body: str = ""


class SendSmsConfig(ActionConfig):
    to: str | None = None
    message: str = ""


class CreateTaskConfig(ActionConfig):
    title: str = Field(..., min_length=1)
    description: str | None = None
    assigned_to: str | None = Field(default=None, alias="assignedTo")


class AddTagConfig(ActionConfig):
    tag: str = Field(..., min_length=1, max_length=100)


class UpdateFieldConfig(ActionConfig):
    model: str | None = None
    field: str | None = None
    value: Any = None


ACTION_CONFIG_MODELS: dict[ActionType, type[ActionConfig]] = {
    ActionType.SEND_EMAIL: SendEmailConfig,
    ActionType.SEND_SMS: SendSmsConfig,
    ActionType.CREATE_TASK: CreateTaskConfig,
    ActionType.ADD_TAG: AddTagConfig,
    ActionType.UPDATE_FIELD: UpdateFieldConfig,
}


class TriggerDefinition(BaseModel):
    """Trigger of a rule in typed form."""

    type: TriggerType
    config: dict[str, Any] = Field(default_factory=dict)


class ActionDefinition(BaseModel):
    """One action of a rule as stored (config still a raw map)."""

    id: str | None = None
    type: str
    config: dict[str, Any] = Field(default_factory=dict)
    order: int = 0


# Results


class ActionOutcome(BaseModel):
    """What a handler reports for one action."""

    success: bool
    result: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def ok(cls, **result: Any) -> "ActionOutcome":
        return cls(success=True, result=result)

    @classmethod
    def failed(cls, error: str) -> "ActionOutcome":
        return cls(success=False, error=error)


class ActionResult(BaseModel):
    """Recorded outcome of one action within a rule run."""

    action_id: str
    action_type: str
    success: bool
    result: dict[str, Any] | None = None
    error: str | None = None


class RuleRunState(str, Enum):
    """Control-flow state of one rule for one event (never persisted)."""

    PENDING = "PENDING"
    MATCHED = "MATCHED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"
    ABORTED = "ABORTED"


class RuleRunResult(BaseModel):
    """Outcome of running one rule.

    `success` only says the run was attempted; per-action outcomes live in
    `results`. A rule-level failure has `success=False`, `error` set and no
    results.
    """

    rule_id: str
    rule_name: str | None = None
    state: RuleRunState
    success: bool
    results: list[ActionResult] | None = None
    error: str | None = None

    @property
    def failed_actions(self) -> int:
        return sum(1 for r in self.results or [] if not r.success)

    @property
    def succeeded_actions(self) -> int:
        return sum(1 for r in self.results or [] if r.success)


class ExecutionSummary(BaseModel):
    """Aggregated outcome of one event handed to the engine."""

    success: bool
    event_type: str
    tenant_id: str
    matched_rules: int = 0
    results: list[RuleRunResult] = Field(default_factory=list)
    error: str | None = None
