import os
from pathlib import Path
from uuid import uuid4

import pytest
from dotenv import load_dotenv

# Tests run against an in-memory SQLite database and simulated messaging,
# regardless of what the developer's .env points at.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SMTP_HOST"] = "localhost"
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["RATE_LIMIT_BACKEND"] = "memory"

backend_dir = Path(__file__).parent.parent
env_file = backend_dir / ".env"
if env_file.exists():
    load_dotenv(env_file, override=False)  # Don't override the values above

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.config_file import get_settings  # noqa: E402

# Clear settings cache to force reload with the test env vars
get_settings.cache_clear()

from app.api.v1.automation import get_messaging_service  # noqa: E402
from app.core.db.deps import get_db  # noqa: E402
from app.core.db.session import Base  # noqa: E402
from app.core.messaging.service import SendResult  # noqa: E402
from app.main import app  # noqa: E402
from app.models.contact import Contact  # noqa: E402
from app.models.tenant import Tenant  # noqa: E402
from app.repositories.automation_repository import AutomationRepository  # noqa: E402

engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _configure_sqlite(dbapi_connection, connection_record):
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs work, and enforce FKs
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@event.listens_for(engine, "begin")
def _begin_sqlite(connection):
    connection.exec_driver_sql("BEGIN")


class FakeMessagingService:
    """Records outbound messages instead of sending them."""

    def __init__(self):
        self.emails: list[dict] = []
        self.sms: list[dict] = []
        self.fail_with: Exception | None = None

    async def send_email(self, to: str, subject: str, html: str) -> SendResult:
        if self.fail_with:
            raise self.fail_with
        self.emails.append({"to": to, "subject": subject, "html": html})
        return SendResult(success=True, id=f"email-{len(self.emails)}", simulated=True)

    async def send_sms(self, to: str, body: str) -> SendResult:
        if self.fail_with:
            raise self.fail_with
        self.sms.append({"to": to, "body": body})
        return SendResult(success=True, id=f"sms-{len(self.sms)}", simulated=True)


@pytest.fixture(scope="session")
def setup_database():
    """Create all tables once per test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(setup_database):
    """Create an isolated database session using transactions for each test.

    Repository commits only release a SAVEPOINT; the outer transaction is
    rolled back at the end, so tests never see each other's data.
    """
    connection = engine.connect()
    transaction = connection.begin()
    db = Session(bind=connection, join_transaction_mode="create_savepoint")

    try:
        yield db
    finally:
        db.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()


@pytest.fixture
def fake_messaging():
    """Messaging service double that records calls."""
    return FakeMessagingService()


@pytest.fixture(scope="function")
def client(db_session, fake_messaging):
    """Create a test client with database and messaging overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_messaging_service] = lambda: fake_messaging
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_tenant(db_session):
    """Create a test tenant."""
    tenant = Tenant(
        name="Test Tenant",
        slug=f"test-tenant-{uuid4().hex[:8]}",
    )
    db_session.add(tenant)
    db_session.flush()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture(scope="function")
def other_tenant(db_session):
    """Create a second tenant for isolation checks."""
    tenant = Tenant(
        name="Other Tenant",
        slug=f"other-tenant-{uuid4().hex[:8]}",
    )
    db_session.add(tenant)
    db_session.flush()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture(scope="function")
def test_contact(db_session, test_tenant):
    """Create a contact in the test tenant."""
    contact = Contact(
        tenant_id=test_tenant.id,
        name="Ada Lovelace",
        email="ada@example.com",
        phone="+15551234567",
        stage="LEAD",
    )
    db_session.add(contact)
    db_session.flush()
    db_session.refresh(contact)
    return contact


@pytest.fixture
def tenant_headers(test_tenant):
    """Headers selecting the test tenant."""
    return {"X-Tenant-ID": str(test_tenant.id)}


@pytest.fixture
def make_rule(db_session):
    """Factory creating a stored rule with trigger and actions."""
    repository = AutomationRepository(db_session)

    def _make_rule(
        tenant_id,
        trigger_type,
        trigger_config=None,
        actions=None,
        name="Test rule",
        is_active=True,
    ):
        actions = actions or []
        return repository.create_rule(
            {"tenant_id": tenant_id, "name": name, "is_active": is_active},
            {"type": trigger_type, "config": trigger_config or {}},
            [
                {"type": a["type"], "config": a.get("config", {}), "order": a.get("order", i)}
                for i, a in enumerate(actions)
            ],
        )

    return _make_rule
