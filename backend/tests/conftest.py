# backend/tests/conftest.py
"""
Pytest configuration.

Every test runs against its own in-memory SQLite database. The environment
is set BEFORE any app import: app.config reads it at import time.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

from datetime import date, datetime, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import get_db
from app.dependencies import get_slot_listener
from app.main import app
from app.models.generated import (
    Base,
    Forms,
    ReservationRules,
    TimeSlots,
    WeekDefinitions,
    WorkingDays,
)
from app.services.slots import SlotService, build_templates

# 2024-01-01 is a Monday
FIRST_DAY = date(2024, 1, 1)
MONDAY = date(2024, 1, 8)
SATURDAY = date(2024, 1, 6)
CAPACITY = 2


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute))


class RecordingListener:
    """Keeps every slot event instead of publishing it."""

    def __init__(self):
        self.events = []

    def slot_created(self, slot):
        self.events.append(("slot_created", slot))

    def slot_updated(self, slot):
        self.events.append(("slot_updated", slot))

    def slot_removed(self, slot):
        self.events.append(("slot_removed", slot))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


@pytest.fixture(scope="function")
def db():
    """A fresh database and session for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_sqlite_fk(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def form(db: Session) -> Forms:
    """
    A form open Monday to Friday, 09:00-12:00 in 30 minute slots, closed on
    weekends, CAPACITY seats per slot, from FIRST_DAY on.
    """
    obj = Forms(title="Passport renewal", is_active=1)
    week = WeekDefinitions(date_of_apply=FIRST_DAY)
    for day_of_week in range(5):
        week.working_days.append(
            WorkingDays(
                day_of_week=day_of_week,
                time_slots=[
                    TimeSlots(starting_time=t.starting_time, ending_time=t.ending_time, is_open=1)
                    for t in build_templates(time(9), time(12), 30)
                ],
            )
        )
    obj.week_definitions.append(week)
    obj.reservation_rules.append(
        ReservationRules(
            date_of_apply=FIRST_DAY,
            max_capacity_per_slot=CAPACITY,
            max_people_per_appointment=CAPACITY,
        )
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def service(db: Session, listener: RecordingListener) -> SlotService:
    return SlotService(db, listener)


@pytest.fixture
def client(db: Session, listener: RecordingListener):
    """Create a test client with the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_slot_listener] = lambda: listener

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()
