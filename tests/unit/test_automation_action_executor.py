"""Unit tests for ActionExecutor."""

import asyncio
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from app.core.automation.action_executor import ActionExecutor
from app.core.automation.handlers import ActionHandler, HandlerRegistry
from app.core.automation.types import (
    ActionOutcome,
    AddTagConfig,
    ExecutionContext,
    RuleRunState,
    SendEmailConfig,
    UpdateFieldConfig,
)
from app.models.automation import ActionType


class RecordingHandler(ActionHandler):
    """Handler that records the order it was called in."""

    def __init__(self, action_type, config_model, calls, behaviour=None):
        self.action_type = action_type
        self.config_model = config_model
        self.calls = calls
        self.behaviour = behaviour

    async def handle(self, config, context):
        self.calls.append((self.action_type.value, config))
        if self.behaviour == "raise":
            raise RuntimeError("provider down")
        if self.behaviour == "fail":
            return ActionOutcome.failed("nothing to do")
        if self.behaviour == "hang":
            await asyncio.sleep(5)
        return ActionOutcome.ok(handled=self.action_type.value)


def _action(action_type, config=None, order=0, **fields):
    return SimpleNamespace(
        id=uuid4(), type=action_type, config=config or {}, order=order, **fields
    )


def _rule(actions):
    return SimpleNamespace(id=uuid4(), name="Rule", actions=actions)


@pytest.fixture
def calls():
    return []


@pytest.fixture
def context():
    return ExecutionContext(uuid4(), {"contactId": "c1", "contactEmail": "a@example.com"})


def _registry(calls, email=None, tag=None, update=None):
    registry = HandlerRegistry()
    registry.register(RecordingHandler(ActionType.SEND_EMAIL, SendEmailConfig, calls, email))
    registry.register(RecordingHandler(ActionType.ADD_TAG, AddTagConfig, calls, tag))
    registry.register(RecordingHandler(ActionType.UPDATE_FIELD, UpdateFieldConfig, calls, update))
    return registry


@pytest.mark.asyncio
async def test_actions_run_in_ascending_order(calls, context):
    """Test that actions run by ascending order regardless of load order."""
    executor = ActionExecutor(_registry(calls), timeout=1)
    rule = _rule(
        [
            _action("ADD_TAG", {"tag": "third"}, order=3),
            _action("SEND_EMAIL", {}, order=1),
            _action("UPDATE_FIELD", {}, order=2),
        ]
    )

    result = await executor.execute(rule, context)

    assert [c[0] for c in calls] == ["SEND_EMAIL", "UPDATE_FIELD", "ADD_TAG"]
    assert result.success is True
    assert result.state == RuleRunState.COMPLETED
    assert [r.action_type for r in result.results] == ["SEND_EMAIL", "UPDATE_FIELD", "ADD_TAG"]


@pytest.mark.asyncio
async def test_order_ties_keep_loaded_order(calls, context):
    """Test that equal orders are executed in the order they were loaded."""
    executor = ActionExecutor(_registry(calls), timeout=1)
    first = _action("ADD_TAG", {"tag": "first"}, order=0)
    second = _action("ADD_TAG", {"tag": "second"}, order=0)

    await executor.execute(_rule([first, second]), context)

    assert [c[1].tag for c in calls] == ["first", "second"]


@pytest.mark.asyncio
async def test_order_ties_are_broken_by_creation_time(calls, context):
    """Test that equal orders run oldest action first."""
    executor = ActionExecutor(_registry(calls), timeout=1)
    created = datetime(2026, 1, 12, tzinfo=UTC)
    newer = _action(
        "ADD_TAG", {"tag": "newer"}, order=0, created_at=created + timedelta(seconds=1)
    )
    older = _action("ADD_TAG", {"tag": "older"}, order=0, created_at=created)

    await executor.execute(_rule([newer, older]), context)

    assert [c[1].tag for c in calls] == ["older", "newer"]


@pytest.mark.asyncio
async def test_failing_action_does_not_stop_the_rest(calls, context):
    """Test that an exception in one action is recorded and the next still runs."""
    executor = ActionExecutor(_registry(calls, email="raise"), timeout=1)
    email = _action("SEND_EMAIL", {}, order=0)
    tag = _action("ADD_TAG", {"tag": "vip"}, order=1)

    result = await executor.execute(_rule([email, tag]), context)

    assert result.success is True
    assert result.results[0].action_id == str(email.id)
    assert result.results[0].success is False
    assert result.results[0].error == "provider down"
    assert result.results[1].success is True
    assert result.results[1].result == {"handled": "ADD_TAG"}
    assert result.failed_actions == 1
    assert result.succeeded_actions == 1


@pytest.mark.asyncio
async def test_failed_outcome_is_recorded(calls, context):
    """Test that a handler reporting failure yields a failed action result."""
    executor = ActionExecutor(_registry(calls, tag="fail"), timeout=1)

    result = await executor.execute(_rule([_action("ADD_TAG", {"tag": "x"})]), context)

    assert result.results[0].success is False
    assert result.results[0].error == "nothing to do"


@pytest.mark.asyncio
async def test_unknown_action_type_is_a_failure(calls, context):
    """Test that an unregistered action type fails and execution continues."""
    executor = ActionExecutor(_registry(calls), timeout=1)
    unknown = _action("SEND_PIGEON", {}, order=0)
    tag = _action("ADD_TAG", {"tag": "vip"}, order=1)

    result = await executor.execute(_rule([unknown, tag]), context)

    assert result.results[0].success is False
    assert "Unknown action type" in result.results[0].error
    assert result.results[1].success is True


@pytest.mark.asyncio
async def test_invalid_config_fails_only_that_action(calls, context):
    """Test that an invalid stored config fails that action alone."""
    executor = ActionExecutor(_registry(calls), timeout=1)
    bad = _action("ADD_TAG", {"tag": ""}, order=0)
    good = _action("SEND_EMAIL", {}, order=1)

    result = await executor.execute(_rule([bad, good]), context)

    assert result.results[0].success is False
    assert "Invalid ADD_TAG config" in result.results[0].error
    assert result.results[1].success is True
    assert [c[0] for c in calls] == ["SEND_EMAIL"]


@pytest.mark.asyncio
async def test_action_timeout_is_a_failure(calls, context):
    """Test that a hanging handler times out and the next action runs."""
    executor = ActionExecutor(_registry(calls, email="hang"), timeout=0.05)
    rule = _rule([_action("SEND_EMAIL", {}, order=0), _action("ADD_TAG", {"tag": "x"}, order=1)])

    result = await executor.execute(rule, context)

    assert result.results[0].success is False
    assert "timed out" in result.results[0].error
    assert result.results[1].success is True


@pytest.mark.asyncio
async def test_rule_without_actions_completes(calls, context):
    """Test that a rule with no actions completes with empty results."""
    executor = ActionExecutor(_registry(calls), timeout=1)

    result = await executor.execute(_rule([]), context)

    assert result.success is True
    assert result.results == []


@pytest.mark.asyncio
async def test_malformed_rule_aborts(calls, context):
    """Test that a rule without an actions collection aborts at rule level."""
    executor = ActionExecutor(_registry(calls), timeout=1)
    rule = SimpleNamespace(id=uuid4(), name="Broken", actions=None)

    result = await executor.execute(rule, context)

    assert result.success is False
    assert result.state == RuleRunState.ABORTED
    assert result.error
    assert result.results is None
    assert calls == []


@pytest.mark.asyncio
async def test_handlers_receive_the_same_context(context):
    """Test that every action sees the same read-only context."""
    seen = []

    class ContextHandler(ActionHandler):
        action_type = ActionType.UPDATE_FIELD
        config_model = UpdateFieldConfig

        async def handle(self, config, ctx):
            seen.append(ctx)
            with pytest.raises(TypeError):
                ctx["contactId"] = "changed"  # type: ignore[index]
            return ActionOutcome.ok()

    registry = HandlerRegistry()
    registry.register(ContextHandler())
    executor = ActionExecutor(registry, timeout=1)

    await executor.execute(
        _rule([_action("UPDATE_FIELD", order=0), _action("UPDATE_FIELD", order=1)]), context
    )

    assert seen == [context, context]
    assert context["contactId"] == "c1"


@pytest.mark.asyncio
async def test_failing_action_rolls_back_the_session(calls, context):
    """Test that the shared session is rolled back only when an action raises."""
    db = MagicMock()
    executor = ActionExecutor(_registry(calls, email="raise"), timeout=1, db=db)
    rule = _rule([_action("SEND_EMAIL", {}, order=0), _action("ADD_TAG", {"tag": "x"}, order=1)])

    result = await executor.execute(rule, context)

    assert [r.success for r in result.results] == [False, True]
    db.rollback.assert_called_once()


@pytest.mark.asyncio
async def test_successful_actions_leave_the_session_alone(calls, context):
    """Test that no rollback happens when every action succeeds."""
    db = MagicMock()
    executor = ActionExecutor(_registry(calls), timeout=1, db=db)

    await executor.execute(_rule([_action("ADD_TAG", {"tag": "x"})]), context)

    db.rollback.assert_not_called()
