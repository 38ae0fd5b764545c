"""Rule parser for automation rules."""

import logging
from typing import Any

from pydantic import ValidationError

from app.core.automation.types import ACTION_CONFIG_MODELS, TRIGGER_PAYLOAD_KEYS, ActionConfig
from app.models.automation import ActionType, TriggerType

logger = logging.getLogger(__name__)


class RuleDefinitionError(ValueError):
    """Raised when a rule definition cannot be stored."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


def parse_action_config(action_type: str, config: Any) -> ActionConfig:
    """Parse a stored action config into its typed model.

    Args:
        action_type: Action type string
        config: Raw config map

    Returns:
        Typed config for the action type

    Raises:
        RuleDefinitionError: If the type is unknown or the config is invalid
    """
    try:
        model = ACTION_CONFIG_MODELS[ActionType(action_type)]
    except ValueError as e:
        raise RuleDefinitionError(f"Unknown action type: {action_type}", "type") from e

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise RuleDefinitionError("action config must be a dictionary", "config")

    try:
        return model.model_validate(config)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise RuleDefinitionError(f"Invalid {action_type} config: {errors}", "config") from e


class RuleParser:
    """Parser for automation rule definitions."""

    @staticmethod
    def parse_trigger(trigger: Any) -> dict[str, Any]:
        """Parse and validate a trigger definition.

        Args:
            trigger: Trigger dictionary with 'type' and optional 'config'

        Returns:
            Trigger dictionary ready for the store

        Raises:
            RuleDefinitionError: If the trigger is invalid
        """
        if not isinstance(trigger, dict):
            raise RuleDefinitionError("trigger must be a dictionary", "trigger")
        if "type" not in trigger:
            raise RuleDefinitionError("trigger must have a 'type' field", "trigger.type")

        try:
            trigger_type = TriggerType(trigger["type"])
        except ValueError as e:
            raise RuleDefinitionError(
                f"Unknown trigger type: {trigger['type']}", "trigger.type"
            ) from e

        config = trigger.get("config") or {}
        if not isinstance(config, dict):
            raise RuleDefinitionError("trigger config must be a dictionary", "trigger.config")

        unknown = set(config) - set(TRIGGER_PAYLOAD_KEYS[trigger_type])
        if unknown:
            # Still accepted; such keys only match when the emitter supplies them
            logger.warning(
                f"Trigger {trigger_type.value} constrains keys not in its payload: "
                f"{sorted(unknown)}"
            )

        return {"type": trigger_type.value, "config": config}

    @staticmethod
    def parse_actions(actions: Any) -> list[dict[str, Any]]:
        """Parse and validate an action list.

        Actions without an explicit 'order' get their list position.

        Raises:
            RuleDefinitionError: If any action is invalid or orders collide
        """
        if not isinstance(actions, list):
            raise RuleDefinitionError("actions must be a list", "actions")

        parsed = []
        seen_orders: set[int] = set()
        for index, action in enumerate(actions):
            if not isinstance(action, dict):
                raise RuleDefinitionError("Each action must be a dictionary", "actions")
            if "type" not in action:
                raise RuleDefinitionError("Each action must have a 'type' field", "actions")

            config = action.get("config") or {}
            parse_action_config(action["type"], config)

            order = action.get("order", index)
            if isinstance(order, bool) or not isinstance(order, int):
                raise RuleDefinitionError("action order must be an integer", "actions.order")
            if order in seen_orders:
                raise RuleDefinitionError(f"Duplicate action order: {order}", "actions.order")
            seen_orders.add(order)

            parsed.append(
                {"type": ActionType(action["type"]).value, "config": config, "order": order}
            )

        return sorted(parsed, key=lambda a: a["order"])

    @staticmethod
    def parse(rule_definition: dict[str, Any]) -> dict[str, Any]:
        """Parse a rule definition.

        Args:
            rule_definition: Rule definition dictionary

        Returns:
            Parsed rule dictionary

        Raises:
            RuleDefinitionError: If rule definition is invalid
        """
        required_fields = ["name", "trigger", "actions"]
        for field in required_fields:
            if field not in rule_definition:
                raise RuleDefinitionError(f"Missing required field: {field}", field)

        name = rule_definition["name"]
        if not isinstance(name, str) or not name.strip():
            raise RuleDefinitionError("name must be a non-empty string", "name")

        return {
            "name": name.strip(),
            "description": rule_definition.get("description"),
            "is_active": rule_definition.get("is_active", True),
            "trigger": RuleParser.parse_trigger(rule_definition["trigger"]),
            "actions": RuleParser.parse_actions(rule_definition["actions"]),
        }

    @staticmethod
    def validate(rule_definition: dict[str, Any]) -> bool:
        """Validate a rule definition.

        Args:
            rule_definition: Rule definition dictionary

        Returns:
            True if valid, False otherwise
        """
        try:
            RuleParser.parse(rule_definition)
            return True
        except (RuleDefinitionError, KeyError, TypeError) as e:
            logger.warning(f"Invalid rule definition: {e}")
            return False
