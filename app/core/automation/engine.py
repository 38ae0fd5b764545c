"""Automation engine for executing rules."""

import asyncio
import logging

from sqlalchemy.orm import Session

from app.core.automation.action_executor import ActionExecutor
from app.core.automation.condition_evaluator import ConditionEvaluator
from app.core.automation.handlers import HandlerRegistry, build_default_registry
from app.core.automation.matcher import RuleLookupError, RuleMatcher
from app.core.automation.types import (
    ExecutionContext,
    ExecutionSummary,
    RuleRunResult,
    RuleRunState,
    TriggerEvent,
)
from app.core.config_file import get_settings
from app.core.logging import log_rule_run
from app.core.messaging.service import MessagingService
from app.models.automation import Rule
from app.repositories.automation_repository import AutomationRepository

logger = logging.getLogger(__name__)


class AutomationEngine:
    """Engine for executing automation rules."""

    def __init__(
        self,
        db: Session,
        messaging: MessagingService | None = None,
        registry: HandlerRegistry | None = None,
        parallel_rules: bool | None = None,
    ):
        """Initialize automation engine.

        Args:
            db: Database session
            messaging: Messaging service for email/SMS actions
            registry: Handler registry (defaults to the built-in handlers)
            parallel_rules: Run matched rules concurrently (defaults to settings)
        """
        settings = get_settings()
        self.db = db
        self.repository = AutomationRepository(db)
        self.matcher = RuleMatcher(self.repository)
        self.condition_evaluator = ConditionEvaluator()
        self.registry = registry or build_default_registry(db, messaging)
        self.action_executor = ActionExecutor(self.registry, db=db)
        self.parallel_rules = (
            settings.AUTOMATION_PARALLEL_RULES if parallel_rules is None else parallel_rules
        )
    async def execute_rule(self, rule: Rule, event: TriggerEvent) -> RuleRunResult:
        """Execute a rule for a given event.

        Args:
            rule: Rule to execute
            event: Triggering event

        Returns:
            RuleRunResult carrying the final run state
        """
        state = RuleRunState.PENDING
        rule_id = ""
        rule_name = None
        try:
            rule_id = str(rule.id)
            rule_name = rule.name
            if rule.tenant_id != event.tenant_id:
                logger.warning(
                    f"Rule {rule_id} belongs to another tenant than event "
                    f"{event.type.value}, skipping"
                )
                return self._skipped(rule_id, rule_name, "tenant_mismatch")

            if not rule.is_active:
                logger.debug(f"Rule {rule_id} is inactive, skipping")
                return self._skipped(rule_id, rule_name, "rule_inactive")

            trigger = rule.trigger
            if trigger is None or trigger.type != event.type.value:
                return self._skipped(rule_id, rule_name, "trigger_mismatch")

            if not self.condition_evaluator.evaluate(trigger.config, event.data):
                logger.debug(f"Conditions not met for rule {rule_id}")
                return self._skipped(rule_id, rule_name, "conditions_not_met")

            state = RuleRunState.MATCHED
            context = ExecutionContext.from_event(event)

            state = RuleRunState.RUNNING
            return await self.action_executor.execute(rule, context)
        except Exception as e:
            logger.error(
                f"Failed to execute rule {rule_id or '<unknown>'} "
                f"for event {event.type.value} (state {state.value}): {e}",
                exc_info=True,
            )
            return RuleRunResult(
                rule_id=rule_id,
                rule_name=rule_name,
                state=RuleRunState.ABORTED,
                success=False,
                error=str(e),
            )

    async def process_event(self, event: TriggerEvent) -> ExecutionSummary:
        """Process an event by executing all matching rules.

        A failing rule lookup is reported in the summary's error and counts
        as zero matched rules.

        Args:
            event: Event to process

        Returns:
            ExecutionSummary with one entry per matched rule
        """
        try:
            rules = self.matcher.match(event)
        except RuleLookupError as e:
            return ExecutionSummary(
                success=True,
                event_type=event.type.value,
                tenant_id=str(event.tenant_id),
                matched_rules=0,
                results=[],
                error=str(e),
            )

        logger.info(
            f"Event {event.type.value} for tenant {event.tenant_id} "
            f"matched {len(rules)} rule(s)"
        )

        if self.parallel_rules and len(rules) > 1:
            results = list(
                await asyncio.gather(*(self.execute_rule(rule, event) for rule in rules))
            )
        else:
            results = []
            for rule in rules:
                results.append(await self.execute_rule(rule, event))

        for result in results:
            log_rule_run(
                rule_id=result.rule_id,
                tenant_id=str(event.tenant_id),
                event_type=event.type.value,
                state=result.state.value,
                succeeded=result.succeeded_actions,
                failed=result.failed_actions,
                error=result.error,
            )

        return ExecutionSummary(
            success=True,
            event_type=event.type.value,
            tenant_id=str(event.tenant_id),
            matched_rules=len(rules),
            results=results,
        )

    @staticmethod
    def _skipped(rule_id: str, rule_name: str | None, reason: str) -> RuleRunResult:
        return RuleRunResult(
            rule_id=rule_id,
            rule_name=rule_name,
            state=RuleRunState.SKIPPED,
            success=False,
            error=reason,
        )
