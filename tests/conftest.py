import os
from datetime import datetime, timezone
from decimal import Decimal

# Settings are read at import time; point the app at SQLite before importing it
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from seatdesk.api.deps import get_current_admin
from seatdesk.db.base import Base
from seatdesk.db.session import get_db
from seatdesk.main import app
from seatdesk.models.admin import Admin
from seatdesk.schemas.plan import PlanCreate
from seatdesk.schemas.seat import OccupantIn
from seatdesk.services import plans

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def monthly_plan(db):
    return plans.create_plan(db, PlanCreate(name="Monthly", price=Decimal("800.00"), duration="1 month"))


@pytest.fixture
def fortnight_plan(db):
    return plans.create_plan(db, PlanCreate(name="Fortnight", price=Decimal("450.00"), duration="2 weeks"))


@pytest.fixture
def make_occupant():
    def _make(name: str, national_id: str, **kwargs) -> OccupantIn:
        kwargs.setdefault("join_date", datetime(2024, 3, 1, tzinfo=timezone.utc))
        return OccupantIn(name=name, national_id=national_id, **kwargs)
    return _make


@pytest.fixture
def client(db):
    """TestClient on the real routes with the test session and a stub admin."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_admin] = lambda: Admin(
        username="tester", email="tester@seatdesk.io", password_hash="x", is_active=True
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
