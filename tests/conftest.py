"""
Pytest configuration - shared fixtures
"""
import os
import sys
from datetime import datetime, timezone
from typing import Generator

# Settings are read at import time, so the environment has to be ready first
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-for-pytest-only"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

# Add backend directory to sys.path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../backend"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from receipt_api.core import security, tokens
from receipt_api.database import Base, enable_sqlite_foreign_keys, get_db
from receipt_api.main import app
from receipt_api.models import User
from receipt_api.schemas import ReceiptCreate, ReceiptItemCreate
from receipt_api.services.credential_store import credential_store


@pytest.fixture
def test_db() -> Generator[Session, None, None]:
    """Create in-memory SQLite database for testing"""
    # StaticPool keeps one connection so the TestClient thread sees the same data
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client(test_db) -> Generator[TestClient, None, None]:
    """TestClient wired to the in-memory database"""
    def _get_db():
        yield test_db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        del app.dependency_overrides[get_db]


@pytest.fixture
def make_user(test_db):
    """Factory creating users directly in the store"""
    counter = {"n": 0}

    def _make_user(email=None, password="s3cret-pass", phone_number=None) -> User:
        counter["n"] += 1
        return credential_store.insert_user(
            test_db,
            email=email or f"user{counter['n']}@example.com",
            phone_number=phone_number or f"+1555000{counter['n']:04d}",
            password_hash=security.get_password_hash(password),
        )

    return _make_user


@pytest.fixture
def user(make_user) -> User:
    return make_user(email="alice@example.com", phone_number="+15551234567")


@pytest.fixture
def other_user(make_user) -> User:
    return make_user(email="bob@example.com", phone_number="+15557654321")


@pytest.fixture
def auth_headers(user):
    """Bearer header for ``user``"""
    return {"Authorization": f"Bearer {tokens.issue_token(user)}"}


@pytest.fixture
def sample_receipt_create() -> ReceiptCreate:
    """Sample ReceiptCreate data for testing"""
    return ReceiptCreate(
        vendor_name="Coffee Shop",
        total_amount=12.5,
        currency="usd",
        purchase_date=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        receipt_image_url="https://example.com/receipts/1.jpg",
        items=[
            ReceiptItemCreate(name="Latte", quantity=2, unit_price=4.99),
            ReceiptItemCreate(name="Croissant", quantity=1, unit_price=2.52),
        ],
    )
