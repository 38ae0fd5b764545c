"""Pydantic schemas for API requests and responses."""

from app.schemas.automation import (
    ActionResponse,
    ActionSchema,
    EventEmitRequest,
    FormSubmissionCreate,
    FormSubmissionResponse,
    RuleCreate,
    RuleResponse,
    RuleStatusUpdate,
    RuleUpdate,
    TriggerResponse,
    TriggerSchema,
)
from app.schemas.common import (
    ErrorDetail,
    ErrorResponse,
    PaginationMeta,
    StandardListResponse,
    StandardResponse,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    "StandardListResponse",
    "StandardResponse",
    "ActionResponse",
    "ActionSchema",
    "EventEmitRequest",
    "FormSubmissionCreate",
    "FormSubmissionResponse",
    "RuleCreate",
    "RuleResponse",
    "RuleStatusUpdate",
    "RuleUpdate",
    "TriggerResponse",
    "TriggerSchema",
]
