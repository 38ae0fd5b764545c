from app.core.db.session import Base
from app.models.tenant import Tenant
from app.models.tag import Tag, contact_tags
from app.models.contact import Contact
from app.models.task import Task, TaskPriority, TaskStatusEnum
from app.models.automation import (
    ActionType,
    Rule,
    RuleAction,
    RuleTrigger,
    TriggerType,
)

__all__ = [
    "ActionType",
    "Base",
    "Contact",
    "Rule",
    "RuleAction",
    "RuleTrigger",
    "Tag",
    "Task",
    "TaskPriority",
    "TaskStatusEnum",
    "Tenant",
    "TriggerType",
    "contact_tags",
]
