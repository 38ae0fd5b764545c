"""Automation models for rule-based automation engine."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.core.db.session import Base
from app.core.db.types import JSONType


class TriggerType(str, Enum):
    """Domain events a rule can react to."""

    CONTACT_CREATED = "CONTACT_CREATED"
    TAG_ADDED = "TAG_ADDED"
    PIPELINE_STAGE_CHANGED = "PIPELINE_STAGE_CHANGED"
    FORM_SUBMITTED = "FORM_SUBMITTED"
    # Pipeline-scoped triggers
    STAGE_ENTER = "STAGE_ENTER"
    CARD_CREATED = "CARD_CREATED"


class ActionType(str, Enum):
    """Side effects a rule can perform."""

    SEND_EMAIL = "SEND_EMAIL"
    SEND_SMS = "SEND_SMS"
    CREATE_TASK = "CREATE_TASK"
    ADD_TAG = "ADD_TAG"
    UPDATE_FIELD = "UPDATE_FIELD"


class Rule(Base):
    """Rule model for automation rules (a.k.a. workflows)."""

    __tablename__ = "rules"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    tenant_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    trigger = relationship(
        "RuleTrigger",
        back_populates="rule",
        uselist=False,
        cascade="all, delete-orphan",
    )
    actions = relationship(
        "RuleAction",
        back_populates="rule",
        order_by="[RuleAction.order, RuleAction.created_at]",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("idx_rules_tenant_active", "tenant_id", "is_active"),)

    def __repr__(self) -> str:
        return f"<Rule(id={self.id}, name={self.name}, tenant_id={self.tenant_id})>"


class RuleTrigger(Base):
    """Trigger of a rule: event type plus equality constraints."""

    __tablename__ = "rule_triggers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    rule_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("rules.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    type = Column(String(50), nullable=False, index=True)
    config = Column(JSONType, nullable=False, default=dict)  # {"stageId": "..."}

    # Relationships
    rule = relationship("Rule", back_populates="trigger")

    def __repr__(self) -> str:
        return f"<RuleTrigger(rule_id={self.rule_id}, type={self.type})>"


class RuleAction(Base):
    """One ordered action of a rule."""

    __tablename__ = "rule_actions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    rule_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("rules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(String(50), nullable=False)
    config = Column(JSONType, nullable=False, default=dict)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    rule = relationship("Rule", back_populates="actions")

    __table_args__ = (
        UniqueConstraint("rule_id", "order", name="uq_rule_actions_rule_order"),
    )

    def __repr__(self) -> str:
        return f"<RuleAction(rule_id={self.rule_id}, type={self.type}, order={self.order})>"
