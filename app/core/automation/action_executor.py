"""Action executor for automation rules."""

import asyncio
import logging
from typing import Any, NamedTuple

from sqlalchemy.orm import Session

from app.core.automation.handlers import HandlerRegistry
from app.core.automation.rule_parser import RuleDefinitionError, parse_action_config
from app.core.automation.types import (
    ActionResult,
    ExecutionContext,
    RuleRunResult,
    RuleRunState,
)
from app.core.config_file import get_settings

logger = logging.getLogger(__name__)


class PlannedAction(NamedTuple):
    """Plain copy of a stored action, detached from the session."""

    id: str
    type: str
    config: dict[str, Any]
    order: int

    @classmethod
    def from_action(cls, action: Any) -> "PlannedAction":
        return cls(
            id=str(action.id),
            type=str(action.type),
            config=dict(action.config or {}),
            order=action.order,
        )


def ordered_actions(actions: Any) -> list[Any]:
    """Sort actions by ascending order; ties fall back to creation time."""

    def sort_key(action: Any) -> tuple:
        created_at = getattr(action, "created_at", None)
        return (action.order, created_at is None, created_at or 0)

    return sorted(actions, key=sort_key)


class ActionExecutor:
    """Executor for rule actions.

    The per-action timeout only bounds awaited work (messaging calls).
    Synchronous session work done by the task and tag handlers runs to
    completion before the timeout can fire.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        timeout: float | None = None,
        db: Session | None = None,
    ):
        """Initialize action executor.

        Args:
            registry: Handler registry
            timeout: Per-action timeout in seconds (defaults to settings)
            db: Session shared with the handlers, rolled back when an action fails
        """
        self.registry = registry
        self.db = db
        self.timeout = (
            timeout if timeout is not None else get_settings().AUTOMATION_ACTION_TIMEOUT_SECONDS
        )

    async def execute(self, rule: Any, context: ExecutionContext) -> RuleRunResult:
        """Execute the actions of a rule in order.

        Each action runs inside its own failure boundary, so a failing action
        is recorded and the next one still runs. The rule-level result only
        reports that execution was attempted.

        Args:
            rule: Hydrated rule (trigger plus actions)
            context: Execution context for this rule run

        Returns:
            RuleRunResult with one ActionResult per action
        """
        rule_id = ""
        rule_name = None
        try:
            rule_id = str(rule.id)
            rule_name = getattr(rule, "name", None)
            actions = [PlannedAction.from_action(a) for a in ordered_actions(rule.actions)]
        except Exception as e:
            logger.error(f"Failed to execute rule {rule_id or '<unknown>'}: {e}", exc_info=True)
            return RuleRunResult(
                rule_id=rule_id,
                rule_name=rule_name,
                state=RuleRunState.ABORTED,
                success=False,
                error=str(e),
            )

        results = []
        for action in actions:
            results.append(await self._execute_action(action, context))

        return RuleRunResult(
            rule_id=rule_id,
            rule_name=rule_name,
            state=RuleRunState.COMPLETED,
            success=True,
            results=results,
        )

    async def _execute_action(
        self, action: PlannedAction, context: ExecutionContext
    ) -> ActionResult:
        """Execute a single action inside a failure boundary.

        Args:
            action: Detached copy of the stored action
            context: Execution context

        Returns:
            ActionResult
        """
        action_id = action.id
        action_type = action.type

        handler = self.registry.get(action_type)
        if handler is None:
            logger.warning(f"Unknown action type {action_type} (action {action_id})")
            return ActionResult(
                action_id=action_id,
                action_type=action_type,
                success=False,
                error=f"Unknown action type: {action_type}",
            )

        try:
            config = parse_action_config(action_type, action.config)
            outcome = await asyncio.wait_for(
                handler.handle(config, context), timeout=self.timeout
            )
        except RuleDefinitionError as e:
            logger.warning(f"Invalid config for action {action_id}: {e}")
            return ActionResult(
                action_id=action_id, action_type=action_type, success=False, error=str(e)
            )
        except TimeoutError:
            logger.error(f"Action {action_id} ({action_type}) timed out after {self.timeout}s")
            self._discard_pending_writes()
            return ActionResult(
                action_id=action_id,
                action_type=action_type,
                success=False,
                error=f"Action timed out after {self.timeout}s",
            )
        except Exception as e:
            logger.error(f"Failed to execute action {action_id} ({action_type}): {e}", exc_info=True)
            self._discard_pending_writes()
            return ActionResult(
                action_id=action_id,
                action_type=action_type,
                success=False,
                error=str(e) or e.__class__.__name__,
            )

        return ActionResult(
            action_id=action_id,
            action_type=action_type,
            success=outcome.success,
            result=outcome.result,
            error=outcome.error,
        )

    def _discard_pending_writes(self) -> None:
        # A failed flush leaves the session unusable until rolled back
        if self.db is not None:
            self.db.rollback()
