"""Automation service for rule management."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.automation.rule_parser import RuleDefinitionError, RuleParser
from app.models.automation import Rule
from app.repositories.automation_repository import AutomationRepository

logger = logging.getLogger(__name__)


class AutomationService:
    """Service for automation rule management."""

    def __init__(self, db: Session):
        """Initialize service with database session."""
        self.db = db
        self.repository = AutomationRepository(db)

    def create_rule(
        self,
        tenant_id: UUID,
        name: str,
        trigger: dict[str, Any],
        actions: list[dict[str, Any]],
        description: str | None = None,
        is_active: bool = True,
    ) -> Rule:
        """Create a new automation rule.

        Args:
            tenant_id: Tenant ID
            name: Rule name
            trigger: Trigger definition ('type' plus optional 'config')
            actions: Ordered list of actions
            description: Rule description (optional)
            is_active: Whether rule is active

        Returns:
            Created rule

        Raises:
            RuleDefinitionError: If the definition is invalid
        """
        parsed = RuleParser.parse(
            {
                "name": name,
                "description": description,
                "is_active": is_active,
                "trigger": trigger,
                "actions": actions,
            }
        )
        rule = self.repository.create_rule(
            {
                "tenant_id": tenant_id,
                "name": parsed["name"],
                "description": parsed["description"],
                "is_active": parsed["is_active"],
            },
            parsed["trigger"],
            parsed["actions"],
        )

        logger.info(f"Created rule '{rule.name}' (ID: {rule.id}) for tenant {tenant_id}")
        return rule

    def get_rule(self, rule_id: UUID, tenant_id: UUID) -> Rule | None:
        """Get a rule by ID.

        Args:
            rule_id: Rule ID
            tenant_id: Tenant ID

        Returns:
            Rule or None if not found
        """
        return self.repository.get_rule_by_id(rule_id, tenant_id)

    def get_all_rules(
        self, tenant_id: UUID, active_only: bool = False, skip: int = 0, limit: int = 100
    ) -> list[Rule]:
        """Get all rules for a tenant, newest first."""
        return self.repository.get_all_rules(tenant_id, active_only, skip, limit)

    def count_rules(self, tenant_id: UUID, active_only: bool = False) -> int:
        """Count rules for a tenant."""
        return self.repository.count_all_rules(tenant_id, active_only)

    def update_rule(
        self,
        rule_id: UUID,
        tenant_id: UUID,
        name: str | None = None,
        description: str | None = None,
        trigger: dict[str, Any] | None = None,
        actions: list[dict[str, Any]] | None = None,
        is_active: bool | None = None,
    ) -> Rule | None:
        """Update a rule.

        A new trigger or action list replaces the stored one wholesale.

        Args:
            rule_id: Rule ID
            tenant_id: Tenant ID
            name: New name (optional)
            description: New description (optional)
            trigger: New trigger (optional)
            actions: New actions (optional)
            is_active: New active status (optional)

        Returns:
            Updated rule or None if not found

        Raises:
            RuleDefinitionError: If the new definition is invalid
        """
        rule = self.repository.get_rule_by_id(rule_id, tenant_id)
        if not rule:
            return None

        # Validate everything before writing anything
        parsed_trigger = RuleParser.parse_trigger(trigger) if trigger is not None else None
        parsed_actions = RuleParser.parse_actions(actions) if actions is not None else None

        update_data: dict[str, Any] = {}
        if name is not None:
            if not name.strip():
                raise RuleDefinitionError("name must be a non-empty string", "name")
            update_data["name"] = name.strip()
        if description is not None:
            update_data["description"] = description
        if is_active is not None:
            update_data["is_active"] = is_active

        if update_data:
            rule = self.repository.update_rule(rule_id, tenant_id, update_data)

        if parsed_trigger is not None or parsed_actions is not None:
            rule = self.repository.replace_rule_definition(
                rule_id, tenant_id, parsed_trigger, parsed_actions
            )

        logger.info(f"Updated rule {rule_id} for tenant {tenant_id}")
        return rule

    def set_rule_active(self, rule_id: UUID, tenant_id: UUID, is_active: bool) -> Rule | None:
        """Toggle a rule on or off.

        Returns:
            Updated rule or None if not found
        """
        rule = self.repository.update_rule(rule_id, tenant_id, {"is_active": is_active})
        if rule:
            logger.info(
                f"Rule {rule_id} {'activated' if is_active else 'deactivated'} "
                f"for tenant {tenant_id}"
            )
        return rule

    def delete_rule(self, rule_id: UUID, tenant_id: UUID) -> bool:
        """Delete a rule.

        Args:
            rule_id: Rule ID
            tenant_id: Tenant ID

        Returns:
            True if deleted, False if not found
        """
        result = self.repository.delete_rule(rule_id, tenant_id)
        if result:
            logger.info(f"Deleted rule {rule_id} for tenant {tenant_id}")
        return result
