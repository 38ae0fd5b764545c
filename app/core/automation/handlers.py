"""Action handlers: one side effect per action type."""

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.automation.types import (
    ActionConfig,
    ActionOutcome,
    AddTagConfig,
    CreateTaskConfig,
    ExecutionContext,
    SendEmailConfig,
    SendSmsConfig,
    UpdateFieldConfig,
)
from app.core.logging import mask_email, mask_phone
from app.core.messaging.service import MessagingService
from app.models.automation import ActionType
from app.models.task import TaskPriority, TaskStatusEnum
from app.repositories.contact_repository import ContactRepository
from app.repositories.tag_repository import TagRepository
from app.repositories.task_repository import TaskRepository

logger = logging.getLogger(__name__)

# (model, field) pairs UPDATE_FIELD may write; none yet
UPDATABLE_FIELDS: frozenset[tuple[str, str]] = frozenset()


def render_template(template: str, context: Mapping[str, Any]) -> str:
    """Replace {{key}} placeholders with context values."""
    result = template
    for key, value in context.items():
        if isinstance(value, str | int | float):
            result = result.replace(f"{{{{{key}}}}}", str(value))
    return result


def _as_uuid(value: Any) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class ActionHandler:
    """Base class for action handlers.

    Handlers report "nothing to do" situations as a failed outcome; any other
    error may propagate and is recorded by the executor.
    """

    action_type: ActionType
    config_model: type[ActionConfig] = ActionConfig

    async def handle(self, config: ActionConfig, context: ExecutionContext) -> ActionOutcome:
        raise NotImplementedError


class SendEmailHandler(ActionHandler):
    action_type = ActionType.SEND_EMAIL
    config_model = SendEmailConfig

    def __init__(self, messaging: MessagingService):
        self.messaging = messaging

    async def handle(self, config: SendEmailConfig, context: ExecutionContext) -> ActionOutcome:
        to = config.to or context.lookup("contact.email") or context.get("contactEmail")
        if not to:
            return ActionOutcome.failed("No recipient email address")

        subject = render_template(config.subject, context)
        body = render_template(config.body, context)
        sent = await self.messaging.send_email(to, subject, body)
        if not sent.success:
            return ActionOutcome.failed(sent.error or "Email delivery failed")

        logger.debug(f"SEND_EMAIL delivered to {mask_email(to)}")
        return ActionOutcome.ok(to=to, id=sent.id, simulated=sent.simulated)


class SendSmsHandler(ActionHandler):
    action_type = ActionType.SEND_SMS
    config_model = SendSmsConfig

    def __init__(self, messaging: MessagingService):
        self.messaging = messaging

    async def handle(self, config: SendSmsConfig, context: ExecutionContext) -> ActionOutcome:
        to = config.to or context.lookup("contact.phone") or context.get("contactPhone")
        if not to:
            return ActionOutcome.failed("No recipient phone number")

        sent = await self.messaging.send_sms(to, render_template(config.message, context))
        if not sent.success:
            return ActionOutcome.failed(sent.error or "SMS delivery failed")

        logger.debug(f"SEND_SMS delivered to {mask_phone(to)}")
        return ActionOutcome.ok(to=to, id=sent.id, simulated=sent.simulated)


class CreateTaskHandler(ActionHandler):
    action_type = ActionType.CREATE_TASK
    config_model = CreateTaskConfig

    def __init__(self, db: Session):
        self.tasks = TaskRepository(db)
        self.contacts = ContactRepository(db)

    async def handle(self, config: CreateTaskConfig, context: ExecutionContext) -> ActionOutcome:
        tenant_id = context.tenant_id
        contact_id = None
        raw_contact_id = context.get("contactId")
        if raw_contact_id:
            contact_id = _as_uuid(raw_contact_id)
            if contact_id is None or not self.contacts.get_by_id(contact_id, tenant_id):
                return ActionOutcome.failed(f"Contact {raw_contact_id} not found")

        task = self.tasks.create_task(
            {
                "tenant_id": tenant_id,
                "title": render_template(config.title, context),
                "description": config.description,
                "status": TaskStatusEnum.TODO.value,
                "priority": TaskPriority.MEDIUM.value,
                "contact_id": contact_id,
                "assigned_to_id": config.assigned_to,
            }
        )
        return ActionOutcome.ok(task_id=str(task.id))


class AddTagHandler(ActionHandler):
    action_type = ActionType.ADD_TAG
    config_model = AddTagConfig

    def __init__(self, db: Session):
        self.tags = TagRepository(db)
        self.contacts = ContactRepository(db)

    async def handle(self, config: AddTagConfig, context: ExecutionContext) -> ActionOutcome:
        raw_contact_id = context.get("contactId")
        if not raw_contact_id:
            return ActionOutcome.failed("No contactId in context")

        tenant_id = context.tenant_id
        contact_id = _as_uuid(raw_contact_id)
        if contact_id is None or not self.contacts.get_by_id(contact_id, tenant_id):
            return ActionOutcome.failed(f"Contact {raw_contact_id} not found")

        tag = self.tags.upsert_tag(tenant_id, config.tag)
        attached = self.tags.attach_tag_to_contact(contact_id, tag.id)
        return ActionOutcome.ok(tag_id=str(tag.id), tag=tag.name, attached=attached)


class UpdateFieldHandler(ActionHandler):
    """Placeholder: checks the target against the allow-list, writes nothing."""

    action_type = ActionType.UPDATE_FIELD
    config_model = UpdateFieldConfig

    async def handle(self, config: UpdateFieldConfig, context: ExecutionContext) -> ActionOutcome:
        target = (config.model, config.field)
        if config.model and config.field and target not in UPDATABLE_FIELDS:
            logger.info(f"UPDATE_FIELD target {config.model}.{config.field} is not updatable")
        return ActionOutcome.ok(updated=False, model=config.model, field=config.field)


class HandlerRegistry:
    """Maps action types to their handlers."""

    def __init__(self):
        self._handlers: dict[str, ActionHandler] = {}

    def register(self, handler: ActionHandler) -> None:
        self._handlers[handler.action_type.value] = handler

    def get(self, action_type: str) -> ActionHandler | None:
        return self._handlers.get(action_type)

    def registered_types(self) -> list[str]:
        return sorted(self._handlers)


def build_default_registry(
    db: Session, messaging: MessagingService | None = None
) -> HandlerRegistry:
    """Build a registry with the built-in handlers.

    Args:
        db: Database session used by task and tag handlers
        messaging: Messaging service for email/SMS (defaults to a new one)

    Returns:
        HandlerRegistry
    """
    messaging = messaging or MessagingService()
    registry = HandlerRegistry()
    registry.register(SendEmailHandler(messaging))
    registry.register(SendSmsHandler(messaging))
    registry.register(CreateTaskHandler(db))
    registry.register(AddTagHandler(db))
    registry.register(UpdateFieldHandler())
    return registry
