"""Rule matcher: selects the active rules an event should run."""

import logging

from app.core.automation.condition_evaluator import ConditionEvaluator
from app.core.automation.types import TriggerEvent
from app.models.automation import Rule
from app.repositories.automation_repository import AutomationRepository

logger = logging.getLogger(__name__)


class RuleLookupError(Exception):
    """Raised when the rule store cannot be read for an event."""


class RuleMatcher:
    """Matches trigger events against the tenant's stored rules."""

    def __init__(self, repository: AutomationRepository):
        """Initialize rule matcher.

        Args:
            repository: Rule store
        """
        self.repository = repository
        self.evaluator = ConditionEvaluator()

    def match(self, event: TriggerEvent) -> list[Rule]:
        """Find the active rules of the event's tenant whose trigger fits.

        A failing store read rolls the session back and raises RuleLookupError.

        Args:
            event: Trigger event

        Returns:
            Hydrated rules (trigger plus ordered actions)
        """
        try:
            candidates = self.repository.find_active_rules(
                event.tenant_id, event.type.value
            )
        except Exception as e:
            logger.error(
                f"Failed to load rules for {event.type.value} "
                f"(tenant {event.tenant_id}): {e}",
                exc_info=True,
            )
            self.repository.db.rollback()
            raise RuleLookupError(f"Rule lookup failed: {e}") from e

        matched = []
        for rule in candidates:
            if rule.tenant_id != event.tenant_id or not rule.is_active:
                continue
            trigger = rule.trigger
            if trigger is None:
                continue
            if self.evaluator.evaluate(trigger.config, event.data):
                matched.append(rule)
            else:
                logger.debug(f"Rule {rule.id} conditions not met for {event.type.value}")

        return matched
