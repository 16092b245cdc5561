"""Pytest configuration and shared fixtures."""

import uuid
from datetime import date
from typing import List
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from insurance_analyzer.config import settings
from insurance_analyzer.constants import PolicyStatus
from insurance_analyzer.core.hashing import hash_password
from insurance_analyzer.core.jwt_handler import create_access_token
from insurance_analyzer.core.rate_limit import limiter
from insurance_analyzer.db.base import Base
from insurance_analyzer.db.session import init_db
from insurance_analyzer.dependencies import get_db
from insurance_analyzer.main import app
from insurance_analyzer.models.policy import Policy
from insurance_analyzer.models.user import User, UserProfile
from insurance_analyzer.services import email_service

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def build_pdf(pages: List[str]) -> bytes:
    """Assemble a minimal text-only PDF, one string per page, lines split on newlines."""
    page_ids = [4 + 2 * i for i in range(len(pages))]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for pid, text in zip(page_ids, pages):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {pid + 1} 0 R >>"
            ).encode()
        )
        ops = ["BT", "/F1 12 Tf", "14 TL", "72 720 Td"]
        for line in text.split("\n"):
            escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
            ops.append(f"({escaped}) Tj T*")
        ops.append("ET")
        stream = "\n".join(ops).encode("latin-1")
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{num} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n"
    ).encode()
    return bytes(out)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """The in-memory limiter is process-wide; start every test with empty windows."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture(autouse=True)
def vendor_settings(monkeypatch):
    """Deterministic vendor configuration; no real keys are ever used."""
    monkeypatch.setattr(settings, "S3_BUCKET_NAME", "test-bucket")
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "sk_test")
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    monkeypatch.setattr(settings, "STRIPE_PRICE_AI_ANALYZER", "price_basic")
    monkeypatch.setattr(settings, "STRIPE_PRICE_AI_ANALYZER_PLUS", "price_plus")
    monkeypatch.setattr(settings, "FRONTEND_ORIGIN", "http://app.test")


@pytest.fixture
def db_session():
    """Fresh in-memory schema per test."""
    Base.metadata.drop_all(bind=test_engine)
    init_db(test_engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def resend_send(monkeypatch) -> Mock:
    """Mocked Resend client; returns a fake e-mail id."""
    send = Mock(return_value={"id": "email_123"})
    monkeypatch.setattr(email_service.resend.Emails, "send", send)
    return send


@pytest.fixture
def client(db_session, monkeypatch, resend_send) -> TestClient:
    """FastAPI test client bound to the in-memory database.

    Returns:
        TestClient: client without the lifespan (tables are already created)
    """
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(email_service, "SessionLocal", TestingSessionLocal)
    return TestClient(app)


@pytest.fixture
def make_user(db_session):
    def _make(email: str = "jane@example.com", name: str = "Jane Doe", password: str = "password123") -> User:
        user = User(name=name, email=email, hashed_password=hash_password(password))
        user.profile = UserProfile()
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def user(make_user) -> User:
    return make_user()


def auth_headers_for(user: User) -> dict:
    token = create_access_token({"sub": user.id, "email": user.email, "name": user.name})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(user) -> dict:
    return auth_headers_for(user)


@pytest.fixture
def make_policy(db_session):
    def _make(owner: User, **overrides) -> Policy:
        file_id = str(uuid.uuid4())
        fields = dict(
            user_id=owner.id,
            file_name=file_id,
            original_file_name="home-policy.pdf",
            s3_key=f"policies/{owner.id}/{file_id}/home-policy.pdf",
            s3_bucket="test-bucket",
            file_size=2048,
            coverage_start=date(2024, 1, 1),
            coverage_end=date(2025, 1, 1),
            status=PolicyStatus.UPLOADED,
        )
        fields.update(overrides)
        policy = Policy(**fields)
        db_session.add(policy)
        db_session.commit()
        db_session.refresh(policy)
        return policy
    return _make


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Three-page policy PDF with a running header and page numbers."""
    return build_pdf([
        "Acme Mutual Homeowners Policy\nCoverage A Dwelling limit 350,000\nDeductible 1,000 per occurrence\n1",
        "Acme Mutual Homeowners Policy\nExclusions: flood and earth movement\nRoof surfaces paid on actual cash value\n2",
        "Acme Mutual Homeowners Policy\nSection II Liability limit 300,000\n3",
    ])
