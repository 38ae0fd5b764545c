"""Automation module for rule-based automation engine."""

from app.core.automation.action_executor import ActionExecutor
from app.core.automation.condition_evaluator import ConditionEvaluator, conditions_match
from app.core.automation.emitters import (
    emit,
    trigger_card_created,
    trigger_contact_created,
    trigger_form_submitted,
    trigger_pipeline_stage_changed,
    trigger_stage_enter,
    trigger_tag_added,
)
from app.core.automation.engine import AutomationEngine
from app.core.automation.handlers import HandlerRegistry, build_default_registry
from app.core.automation.matcher import RuleMatcher
from app.core.automation.rule_parser import RuleDefinitionError, RuleParser
from app.core.automation.service import AutomationService
from app.core.automation.types import (
    ExecutionContext,
    ExecutionSummary,
    RuleRunResult,
    RuleRunState,
    TriggerEvent,
)

__all__ = [
    "ActionExecutor",
    "AutomationEngine",
    "AutomationService",
    "ConditionEvaluator",
    "ExecutionContext",
    "ExecutionSummary",
    "HandlerRegistry",
    "RuleDefinitionError",
    "RuleMatcher",
    "RuleParser",
    "RuleRunResult",
    "RuleRunState",
    "TriggerEvent",
    "build_default_registry",
    "conditions_match",
    "emit",
    "trigger_card_created",
    "trigger_contact_created",
    "trigger_form_submitted",
    "trigger_pipeline_stage_changed",
    "trigger_stage_enter",
    "trigger_tag_added",
]
