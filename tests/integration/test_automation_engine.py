"""Integration tests for AutomationEngine."""

from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.core.automation.engine import AutomationEngine
from app.core.automation.handlers import ActionHandler, build_default_registry
from app.core.automation.types import (
    ActionOutcome,
    RuleRunState,
    TriggerEvent,
    UpdateFieldConfig,
)
from app.models.automation import ActionType
from app.models.contact import Contact
from app.models.tag import Tag
from app.models.task import Task
from app.repositories.tag_repository import TagRepository


@pytest.fixture
def automation_engine(db_session, fake_messaging):
    """Create AutomationEngine instance with recorded messaging."""
    return AutomationEngine(db_session, messaging=fake_messaging, parallel_rules=False)


def _contact_created(tenant_id, contact):
    return TriggerEvent(
        type="CONTACT_CREATED",
        tenant_id=tenant_id,
        data={
            "contactId": str(contact.id),
            "contactName": contact.name,
            "contactEmail": contact.email,
            "contactStage": contact.stage,
        },
    )


@pytest.mark.asyncio
async def test_welcome_email_goes_to_new_contact(
    automation_engine, fake_messaging, test_tenant, test_contact, make_rule
):
    """Test that SEND_EMAIL without `to` is delivered to the contact's address."""
    make_rule(
        test_tenant.id,
        "CONTACT_CREATED",
        actions=[
            {
                "type": "SEND_EMAIL",
                "config": {"to": None, "subject": "Welcome {{contactName}}", "body": "<p>Hi</p>"},
            }
        ],
    )

    summary = await automation_engine.process_event(_contact_created(test_tenant.id, test_contact))

    assert summary.success is True
    assert summary.matched_rules == 1
    run = summary.results[0]
    assert run.state == RuleRunState.COMPLETED
    assert run.results[0].success is True
    assert fake_messaging.emails == [
        {"to": "ada@example.com", "subject": "Welcome Ada Lovelace", "html": "<p>Hi</p>"}
    ]


@pytest.mark.asyncio
async def test_stage_constraint_selects_rule(
    automation_engine, fake_messaging, test_tenant, make_rule
):
    """Test that a rule constrained on stageId only runs for that stage."""
    make_rule(
        test_tenant.id,
        "PIPELINE_STAGE_CHANGED",
        {"stageId": "s1"},
        actions=[{"type": "SEND_EMAIL", "config": {"to": "sales@example.com"}}],
    )

    def moved_to(stage_id):
        return TriggerEvent(
            type="PIPELINE_STAGE_CHANGED",
            tenant_id=test_tenant.id,
            data={
                "opportunityId": "o1",
                "oldStageId": "s0",
                "newStageId": stage_id,
                "stageId": stage_id,
            },
        )

    matched = await automation_engine.process_event(moved_to("s1"))
    not_matched = await automation_engine.process_event(moved_to("s2"))

    assert matched.matched_rules == 1
    assert not_matched.matched_rules == 0
    assert not_matched.results == []
    assert len(fake_messaging.emails) == 1


@pytest.mark.asyncio
async def test_inactive_rule_never_runs(
    automation_engine, fake_messaging, test_tenant, test_contact, make_rule
):
    """Test that an inactive rule produces zero matches and no side effects."""
    make_rule(
        test_tenant.id,
        "CONTACT_CREATED",
        actions=[{"type": "SEND_EMAIL", "config": {}}],
        is_active=False,
    )

    summary = await automation_engine.process_event(_contact_created(test_tenant.id, test_contact))

    assert summary.success is True
    assert summary.matched_rules == 0
    assert fake_messaging.emails == []


@pytest.mark.asyncio
async def test_task_and_tag_actions_write_to_database(
    automation_engine, db_session, test_tenant, test_contact, make_rule
):
    """Test CREATE_TASK and ADD_TAG side effects for the triggering contact."""
    make_rule(
        test_tenant.id,
        "CONTACT_CREATED",
        actions=[
            {"type": "CREATE_TASK", "config": {"title": "Call {{contactName}}"}, "order": 0},
            {"type": "ADD_TAG", "config": {"tag": "new-lead"}, "order": 1},
        ],
    )

    summary = await automation_engine.process_event(_contact_created(test_tenant.id, test_contact))

    run = summary.results[0]
    assert [r.success for r in run.results] == [True, True]

    task = db_session.query(Task).filter(Task.tenant_id == test_tenant.id).one()
    assert task.title == "Call Ada Lovelace"
    assert task.status == "TODO"
    assert task.priority == "MEDIUM"
    assert task.contact_id == test_contact.id

    tags = TagRepository(db_session).get_contact_tags(test_contact.id)
    assert [t.name for t in tags] == ["new-lead"]
    assert run.results[1].result["attached"] is True


@pytest.mark.asyncio
async def test_failing_action_does_not_block_following_actions(
    automation_engine, fake_messaging, test_tenant, test_contact, make_rule
):
    """Test that a failing email does not prevent the tag from being added."""
    fake_messaging.fail_with = ConnectionError("smtp down")
    make_rule(
        test_tenant.id,
        "CONTACT_CREATED",
        actions=[
            {"type": "SEND_EMAIL", "config": {}, "order": 0},
            {"type": "ADD_TAG", "config": {"tag": "welcomed"}, "order": 1},
        ],
    )

    summary = await automation_engine.process_event(_contact_created(test_tenant.id, test_contact))

    run = summary.results[0]
    assert run.success is True
    assert run.results[0].success is False
    assert run.results[0].error == "smtp down"
    assert run.results[1].success is True


@pytest.mark.asyncio
async def test_tenant_id_comes_from_event_not_payload(
    db_session, test_tenant, other_tenant, test_contact, make_rule
):
    """Test that a forged tenantId in the payload cannot redirect writes."""
    engine = AutomationEngine(db_session, parallel_rules=False)
    make_rule(
        test_tenant.id,
        "CONTACT_CREATED",
        actions=[{"type": "CREATE_TASK", "config": {"title": "Follow up"}}],
    )
    event = _contact_created(test_tenant.id, test_contact)
    event.data["tenantId"] = str(other_tenant.id)

    await engine.process_event(event)

    assert db_session.query(Task).filter(Task.tenant_id == other_tenant.id).count() == 0
    assert db_session.query(Task).filter(Task.tenant_id == test_tenant.id).count() == 1


@pytest.mark.asyncio
async def test_parallel_rules(db_session, fake_messaging, test_tenant, test_contact, make_rule):
    """Test that all matched rules run when rules execute concurrently."""
    engine = AutomationEngine(db_session, messaging=fake_messaging, parallel_rules=True)
    for name in ("first", "second", "third"):
        make_rule(
            test_tenant.id,
            "CONTACT_CREATED",
            actions=[{"type": "SEND_EMAIL", "config": {"subject": name}}],
            name=name,
        )

    summary = await engine.process_event(_contact_created(test_tenant.id, test_contact))

    assert summary.matched_rules == 3
    assert all(r.state == RuleRunState.COMPLETED for r in summary.results)
    assert sorted(e["subject"] for e in fake_messaging.emails) == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_execute_rule_skips_rule_of_another_tenant(
    automation_engine, other_tenant, make_rule
):
    """Test that execute_rule refuses a rule owned by another tenant."""
    rule = make_rule(other_tenant.id, "CONTACT_CREATED")
    event = TriggerEvent(type="CONTACT_CREATED", tenant_id=uuid4(), data={})

    result = await automation_engine.execute_rule(rule, event)

    assert result.state == RuleRunState.SKIPPED
    assert result.success is False
    assert result.error == "tenant_mismatch"


@pytest.mark.asyncio
async def test_execute_rule_checks_trigger_and_conditions(
    automation_engine, test_tenant, make_rule
):
    """Test SKIPPED reasons for wrong trigger type and unmet conditions."""
    rule = make_rule(test_tenant.id, "TAG_ADDED", {"tag": "vip"})

    wrong_type = await automation_engine.execute_rule(
        rule, TriggerEvent(type="CONTACT_CREATED", tenant_id=test_tenant.id, data={})
    )
    wrong_tag = await automation_engine.execute_rule(
        rule, TriggerEvent(type="TAG_ADDED", tenant_id=test_tenant.id, data={"tag": "cold"})
    )

    assert wrong_type.error == "trigger_mismatch"
    assert wrong_tag.error == "conditions_not_met"


@pytest.mark.asyncio
async def test_same_tag_for_two_contacts_creates_one_tag(
    automation_engine, db_session, test_tenant, test_contact, make_rule
):
    """Test that ADD_TAG reuses the tenant's tag and attaches it to each contact."""
    second = Contact(tenant_id=test_tenant.id, name="Grace Hopper", email="grace@example.com")
    db_session.add(second)
    db_session.flush()
    make_rule(
        test_tenant.id, "CONTACT_CREATED", actions=[{"type": "ADD_TAG", "config": {"tag": "lead"}}]
    )

    await automation_engine.process_event(_contact_created(test_tenant.id, test_contact))
    await automation_engine.process_event(_contact_created(test_tenant.id, second))

    tags = db_session.query(Tag).filter(Tag.tenant_id == test_tenant.id, Tag.name == "lead").all()
    assert len(tags) == 1
    repository = TagRepository(db_session)
    assert [t.name for t in repository.get_contact_tags(test_contact.id)] == ["lead"]
    assert [t.name for t in repository.get_contact_tags(second.id)] == ["lead"]


class OrphanTaskHandler(ActionHandler):
    """UPDATE_FIELD handler whose write violates the tenant foreign key."""

    action_type = ActionType.UPDATE_FIELD
    config_model = UpdateFieldConfig

    def __init__(self, db):
        self.db = db

    async def handle(self, config, context):
        self.db.add(Task(tenant_id=uuid4(), title="Orphan"))
        self.db.commit()
        return ActionOutcome.ok()


@pytest.mark.asyncio
async def test_failed_database_write_does_not_break_following_actions(
    db_session, fake_messaging, test_tenant, test_contact, make_rule
):
    """Test that a handler failing on flush leaves the session usable for the next actions."""
    registry = build_default_registry(db_session, fake_messaging)
    registry.register(OrphanTaskHandler(db_session))
    engine = AutomationEngine(db_session, registry=registry, parallel_rules=False)
    make_rule(
        test_tenant.id,
        "CONTACT_CREATED",
        actions=[
            {"type": "UPDATE_FIELD", "config": {}, "order": 0},
            {"type": "CREATE_TASK", "config": {"title": "Call {{contactName}}"}, "order": 1},
            {"type": "ADD_TAG", "config": {"tag": "new-lead"}, "order": 2},
        ],
    )

    summary = await engine.process_event(_contact_created(test_tenant.id, test_contact))

    run = summary.results[0]
    assert run.state == RuleRunState.COMPLETED
    assert [r.success for r in run.results] == [False, True, True]
    assert db_session.query(Task).filter(Task.title == "Orphan").count() == 0
    task = db_session.query(Task).filter(Task.tenant_id == test_tenant.id).one()
    assert task.title == "Call Ada Lovelace"
    tags = TagRepository(db_session).get_contact_tags(test_contact.id)
    assert [t.name for t in tags] == ["new-lead"]


@pytest.mark.asyncio
async def test_rule_lookup_failure_is_reported_in_summary(
    automation_engine, test_tenant, test_contact
):
    """Test that a failing rule store read reports an error and zero matches."""
    event = _contact_created(test_tenant.id, test_contact)

    with patch.object(
        automation_engine.repository,
        "find_active_rules",
        side_effect=OperationalError("SELECT", {}, Exception("database is gone")),
    ):
        summary = await automation_engine.process_event(event)

    assert summary.success is True
    assert summary.matched_rules == 0
    assert summary.results == []
    assert summary.error is not None
    assert "database is gone" in summary.error
