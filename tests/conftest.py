import os
import secrets
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure project root on sys.path so 'ajira_admin' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from ajira_admin.main import app  # type: ignore
from ajira_admin.database import Base  # type: ignore
from ajira_admin.api import deps  # type: ignore
from ajira_admin import config  # type: ignore
"""Pytest fixtures and factories.

All model modules must be imported before Base.metadata.create_all().
"""
from ajira_admin.models.db import (
    AppUser, Company, LatestJob, JobApplication, Interview, Earning,
    CreditTransaction, Referral, SubscriptionHistory, GeneratedResume,
    Skill, NotificationHistory, AIChatConversation, AIChatMessage, AIChatMessageFeedback,
)
from ajira_admin.integrations.admob import AdMobAPIError, AdMobReportRow
from ajira_admin.integrations.push import BatchOutcome, PushPayload, TokenOutcome

# File-based SQLite so the analytics fan-out (one session per worker thread)
# sees the rows committed by the test thread.
SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///./test_ajira_admin.db"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# deps.get_session_factory and the health check read database.SessionLocal at call time
import ajira_admin.database as _app_database  # noqa: E402
_app_database.SessionLocal = TestingSessionLocal  # type: ignore

NOW = datetime(2025, 6, 15, 10, 0, tzinfo=timezone.utc)
ADMIN_TOKEN = "test-admin-token"

@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    try:
        os.remove("test_ajira_admin.db")
    except OSError:
        pass

@pytest.fixture(autouse=True)
def _clean_tables():
    """Every test starts from empty tables; aggregators read whole tables."""
    yield
    session = TestingSessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
    finally:
        session.close()

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture()
def session_factory():
    return TestingSessionLocal

# ---------- Fakes for external services ----------

class FakeAdMobClient:
    """Stands in for AdMobClient; returns canned rows or raises ``error``."""

    def __init__(self, rows: List[AdMobReportRow] | None = None, error: Exception | None = None):
        self.rows = rows or []
        self.error = error
        self.calls: list[tuple[date, date]] = []

    async def fetch_report(self, start_date: date, end_date: date) -> List[AdMobReportRow]:
        self.calls.append((start_date, end_date))
        if self.error is not None:
            raise self.error
        return list(self.rows)

class FakePushSender:
    """Records batches; tokens listed in ``failures`` fail with the mapped code."""

    def __init__(self, failures: dict[str, str] | None = None, raise_on_batch: set[int] | None = None):
        self.failures = failures or {}
        self.raise_on_batch = raise_on_batch or set()
        self.batches: list[list[str]] = []
        self.payloads: list[PushPayload] = []

    def send_batch(self, payload: PushPayload, tokens: List[str]) -> BatchOutcome:
        index = len(self.batches)
        self.batches.append(list(tokens))
        self.payloads.append(payload)
        if index in self.raise_on_batch:
            raise RuntimeError("provider unavailable")
        outcomes = [
            TokenOutcome(token=t, success=t not in self.failures, error_code=self.failures.get(t))
            for t in tokens
        ]
        failed = sum(1 for o in outcomes if not o.success)
        return BatchOutcome(success_count=len(tokens) - failed, failure_count=failed, outcomes=outcomes)

@pytest.fixture()
def admob_rows():
    def _rows(*amounts: float, start: date = date(2025, 6, 1)) -> List[AdMobReportRow]:
        return [
            AdMobReportRow(date=date(start.year, start.month, start.day + i), earnings=amount, impressions=1000, clicks=10)
            for i, amount in enumerate(amounts)
        ]
    return _rows

@pytest.fixture()
def fake_admob():
    return FakeAdMobClient

@pytest.fixture()
def failing_admob():
    return FakeAdMobClient(error=AdMobAPIError("AdMob API error: 500", status=500))

@pytest.fixture()
def fake_push():
    return FakePushSender

# ---------- App wiring ----------

def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

app.dependency_overrides[deps.get_db] = _override_get_db
app.dependency_overrides[deps.get_session_factory] = lambda: TestingSessionLocal
app.dependency_overrides[deps.get_admob_client] = lambda: None
app.dependency_overrides[deps.get_push_sender] = lambda: None

@pytest.fixture()
def admin_token(monkeypatch):
    monkeypatch.setattr(config, "ADMIN_API_TOKEN", ADMIN_TOKEN)
    return ADMIN_TOKEN

@pytest.fixture()
def auth_header(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}

@pytest.fixture()
def client():
    return TestClient(app)

@pytest.fixture()
def override_dependency():
    """Temporarily replace a dependency for one test."""
    originals = {}

    def _override(dependency, value):
        originals.setdefault(dependency, app.dependency_overrides.get(dependency))
        app.dependency_overrides[dependency] = lambda: value

    yield _override
    for dependency, original in originals.items():
        if original is None:
            app.dependency_overrides.pop(dependency, None)
        else:
            app.dependency_overrides[dependency] = original

# ---------- Data factory helpers ----------

def _add(session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj

@pytest.fixture()
def user_factory(db_session):
    def _create(uid: str | None = None, **fields):
        fields.setdefault("email", f"{secrets.token_hex(4)}@example.com")
        fields.setdefault("created_at", NOW)
        return _add(db_session, AppUser(uid=uid or f"user_{secrets.token_hex(4)}", **fields))
    return _create

@pytest.fixture()
def company_factory(db_session):
    def _create(uid: str | None = None, **fields):
        fields.setdefault("created_at", NOW)
        return _add(db_session, Company(uid=uid or f"co_{secrets.token_hex(4)}", **fields))
    return _create

@pytest.fixture()
def job_factory(db_session):
    def _create(**fields):
        fields.setdefault("title", "Backend Engineer")
        return _add(db_session, LatestJob(**fields))
    return _create

@pytest.fixture()
def application_factory(db_session):
    def _create(**fields):
        return _add(db_session, JobApplication(**fields))
    return _create

@pytest.fixture()
def interview_factory(db_session):
    def _create(**fields):
        fields.setdefault("created_at", NOW)
        return _add(db_session, Interview(**fields))
    return _create

@pytest.fixture()
def earning_factory(db_session):
    def _create(amount: float, revenue_source: str = "other", earned_at: datetime = NOW, **fields):
        return _add(db_session, Earning(amount=amount, revenue_source=revenue_source, earned_at=earned_at, **fields))
    return _create

@pytest.fixture()
def credit_factory(db_session):
    def _create(amount: int, **fields):
        fields.setdefault("created_at", NOW)
        return _add(db_session, CreditTransaction(amount=amount, **fields))
    return _create

@pytest.fixture()
def referral_factory(db_session):
    def _create(**fields):
        fields.setdefault("created_at", NOW)
        return _add(db_session, Referral(**fields))
    return _create

@pytest.fixture()
def subscription_factory(db_session):
    def _create(**fields):
        fields.setdefault("created_at", NOW)
        return _add(db_session, SubscriptionHistory(**fields))
    return _create

@pytest.fixture()
def resume_factory(db_session):
    def _create(**fields):
        fields.setdefault("created_at", NOW)
        return _add(db_session, GeneratedResume(**fields))
    return _create

@pytest.fixture()
def skill_factory(db_session):
    def _create(skill_name: str, **fields):
        fields.setdefault("created_at", NOW)
        return _add(db_session, Skill(skill_name=skill_name, **fields))
    return _create

@pytest.fixture()
def notification_factory(db_session):
    def _create(**fields):
        fields.setdefault("title", "Hello")
        fields.setdefault("message", "World")
        fields.setdefault("recipient_type", "all")
        fields.setdefault("sent_at", NOW)
        return _add(db_session, NotificationHistory(**fields))
    return _create

@pytest.fixture()
def conversation_factory(db_session):
    def _create(user_uid: str | None = "user_1", **fields):
        fields.setdefault("conversation_id", f"conv_{secrets.token_hex(4)}")
        fields.setdefault("created_at", NOW)
        return _add(db_session, AIChatConversation(user_uid=user_uid, **fields))
    return _create

@pytest.fixture()
def chat_message_factory(db_session):
    def _create(conversation_id: str, role: str = "user", content: str = "How do I write a CV?", **fields):
        fields.setdefault("created_at", NOW)
        return _add(db_session, AIChatMessage(conversation_id=conversation_id, role=role, content=content, **fields))
    return _create

@pytest.fixture()
def chat_feedback_factory(db_session):
    def _create(feedback_type: str = "like", **fields):
        fields.setdefault("created_at", NOW)
        return _add(db_session, AIChatMessageFeedback(feedback_type=feedback_type, **fields))
    return _create
