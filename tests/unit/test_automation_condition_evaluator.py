"""Unit tests for trigger condition matching."""

import pytest

from app.core.automation.condition_evaluator import ConditionEvaluator, conditions_match


@pytest.fixture
def condition_evaluator():
    """Create ConditionEvaluator instance."""
    return ConditionEvaluator()


@pytest.fixture
def stage_event_data():
    """Payload of a stage change event."""
    return {
        "opportunityId": "opp-1",
        "oldStageId": "s0",
        "newStageId": "s1",
        "stageId": "s1",
    }


def test_empty_config_matches_anything(stage_event_data):
    """Test that an empty or absent config matches unconditionally."""
    assert conditions_match({}, stage_event_data) is True
    assert conditions_match(None, stage_event_data) is True
    assert conditions_match({}, {}) is True


def test_equal_value_matches(stage_event_data):
    """Test that a single equal key matches."""
    assert conditions_match({"stageId": "s1"}, stage_event_data) is True


def test_different_value_rejects(stage_event_data):
    """Test that a mismatched value rejects."""
    assert conditions_match({"stageId": "s2"}, stage_event_data) is False


def test_missing_key_rejects(stage_event_data):
    """Test that a constraint on a key absent from the data rejects."""
    assert conditions_match({"pipelineId": "p1"}, stage_event_data) is False


def test_all_keys_must_match(stage_event_data):
    """Test that every constraint must hold, not just one."""
    assert conditions_match({"stageId": "s1", "oldStageId": "s0"}, stage_event_data) is True
    assert conditions_match({"stageId": "s1", "oldStageId": "sX"}, stage_event_data) is False


def test_superset_data_still_matches():
    """Test that extra keys in the data do not affect matching."""
    data = {"contactId": "c1", "tag": "vip", "extra": {"nested": True}}
    assert conditions_match({"tag": "vip"}, data) is True


def test_no_type_coercion():
    """Test that values of different types never compare equal."""
    assert conditions_match({"count": "1"}, {"count": 1}) is False
    assert conditions_match({"flag": 1}, {"flag": True}) is False
    assert conditions_match({"count": 1}, {"count": 1.0}) is True


def test_no_partial_or_nested_match():
    """Test that nested maps are compared as whole values."""
    data = {"formData": {"email": "a@example.com", "name": "A"}}
    assert conditions_match({"formData": {"email": "a@example.com"}}, data) is False
    assert conditions_match({"formData": {"email": "a@example.com", "name": "A"}}, data) is True


def test_null_constraint_requires_present_null():
    """Test that a None constraint only matches a present None value."""
    assert conditions_match({"userId": None}, {"userId": None}) is True
    assert conditions_match({"userId": None}, {}) is False


def test_malformed_config_does_not_raise(condition_evaluator, stage_event_data):
    """Test that a non-mapping config fails to match without raising."""
    assert condition_evaluator.evaluate(["stageId"], stage_event_data) is False
    assert condition_evaluator.evaluate("stageId=s1", stage_event_data) is False


def test_evaluator_delegates_to_conditions_match(condition_evaluator, stage_event_data):
    """Test ConditionEvaluator.evaluate."""
    assert condition_evaluator.evaluate({"stageId": "s1"}, stage_event_data) is True
    assert condition_evaluator.evaluate({"stageId": "s2"}, stage_event_data) is False
