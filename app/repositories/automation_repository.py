"""Automation repository for rule store data access."""

from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.models.automation import Rule, RuleAction, RuleTrigger


class AutomationRepository:
    """Repository for automation rule data access.

    Rules are always addressed together with their tenant; nothing here
    returns a rule that belongs to a different tenant.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def _hydrated(self):
        return self.db.query(Rule).options(
            selectinload(Rule.trigger), selectinload(Rule.actions)
        )

    # Rule operations
    def create_rule(
        self,
        rule_data: dict[str, Any],
        trigger_data: dict[str, Any],
        actions_data: list[dict[str, Any]],
    ) -> Rule:
        """Create a rule together with its trigger and actions."""
        rule = Rule(**rule_data)
        rule.trigger = RuleTrigger(**trigger_data)
        rule.actions = [RuleAction(**action) for action in actions_data]
        self.db.add(rule)
        self.db.commit()
        self.db.refresh(rule)
        return rule

    def get_rule_by_id(self, rule_id: UUID, tenant_id: UUID) -> Rule | None:
        """Get rule by ID and tenant ID."""
        return (
            self._hydrated()
            .filter(Rule.id == rule_id, Rule.tenant_id == tenant_id)
            .first()
        )

    def get_all_rules(
        self,
        tenant_id: UUID,
        active_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Rule]:
        """Get all rules by tenant with pagination."""
        query = self._hydrated().filter(Rule.tenant_id == tenant_id)
        if active_only:
            query = query.filter(Rule.is_active.is_(True))
        return query.order_by(Rule.created_at.desc()).offset(skip).limit(limit).all()

    def count_all_rules(self, tenant_id: UUID, active_only: bool = False) -> int:
        """Count all rules by tenant."""
        query = self.db.query(func.count(Rule.id)).filter(Rule.tenant_id == tenant_id)
        if active_only:
            query = query.filter(Rule.is_active.is_(True))
        return query.scalar() or 0

    def find_active_rules(self, tenant_id: UUID, trigger_type: str) -> list[Rule]:
        """Get active rules of a tenant whose trigger has the given type."""
        return (
            self._hydrated()
            .join(Rule.trigger)
            .filter(
                Rule.tenant_id == tenant_id,
                Rule.is_active.is_(True),
                RuleTrigger.type == trigger_type,
            )
            .all()
        )

    def update_rule(
        self, rule_id: UUID, tenant_id: UUID, rule_data: dict[str, Any]
    ) -> Rule | None:
        """Update scalar fields of a rule (name, description, is_active)."""
        rule = self.get_rule_by_id(rule_id, tenant_id)
        if not rule:
            return None
        for key, value in rule_data.items():
            setattr(rule, key, value)
        self.db.commit()
        self.db.refresh(rule)
        return rule

    def replace_rule_definition(
        self,
        rule_id: UUID,
        tenant_id: UUID,
        trigger_data: dict[str, Any] | None = None,
        actions_data: list[dict[str, Any]] | None = None,
    ) -> Rule | None:
        """Replace trigger and/or actions of a rule wholesale.

        Old rows are deleted and new ones inserted in the same transaction;
        there is no partial patch of an action list.
        """
        rule = self.get_rule_by_id(rule_id, tenant_id)
        if not rule:
            return None

        if trigger_data is not None:
            self.db.query(RuleTrigger).filter(RuleTrigger.rule_id == rule.id).delete(
                synchronize_session=False
            )
            self.db.add(RuleTrigger(rule_id=rule.id, **trigger_data))

        if actions_data is not None:
            self.db.query(RuleAction).filter(RuleAction.rule_id == rule.id).delete(
                synchronize_session=False
            )
            for action in actions_data:
                self.db.add(RuleAction(rule_id=rule.id, **action))

        self.db.commit()
        return self.get_rule_by_id(rule_id, tenant_id)

    def delete_rule(self, rule_id: UUID, tenant_id: UUID) -> bool:
        """Delete a rule (trigger and actions cascade)."""
        rule = self.get_rule_by_id(rule_id, tenant_id)
        if not rule:
            return False
        self.db.delete(rule)
        self.db.commit()
        return True
