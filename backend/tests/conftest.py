# backend/tests/conftest.py
"""
Pytest configuration.

Every test gets a fresh in-memory SQLite database. Time is pinned with a
FrozenClock (Monday 2026-10-19 10:00 in Warsaw) injected into services and,
for route tests, into the FastAPI dependency graph.
"""

import os
import sys

os.environ.setdefault("database_url", "sqlite+pysqlite:///:memory:")

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterator, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tutoring.api.dependencies import get_clock, get_db
from tutoring.core.enums import InvitationStatus, LessonStatus, PaymentStatus
from tutoring.database import Base
from tutoring.main import fastapi_app as app
from tutoring.models import Lesson, LessonInvitation, TutorWeeklyAvailability

from helpers import NOW, STUDENT_ID, TUTOR_ID, FrozenClock

# Import models so Base.metadata is populated for create_all.
import tutoring.models  # noqa: F401


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Iterator[Session]:
    TestingSessionLocal = sessionmaker(
        bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def make_lesson(db: Session) -> Callable[..., Lesson]:
    def _make(
        scheduled_at: datetime,
        price: Decimal = Decimal("200.00"),
        reschedule_count: int = 0,
        status: str = LessonStatus.SCHEDULED.value,
        payment_status: str = PaymentStatus.PAID.value,
        tutor_id: str = TUTOR_ID,
        student_id: str = STUDENT_ID,
    ) -> Lesson:
        lesson = Lesson(
            student_id=student_id,
            tutor_id=tutor_id,
            title="Matematyka",
            scheduled_at=scheduled_at,
            price=price,
            reschedule_count=reschedule_count,
            status=status,
            payment_status=payment_status,
        )
        db.add(lesson)
        db.commit()
        return lesson

    return _make


@pytest.fixture
def make_availability(db: Session) -> Callable[..., List[TutorWeeklyAvailability]]:
    def _make(
        slots: Sequence[tuple], tutor_id: str = TUTOR_ID, is_available: bool = True
    ) -> List[TutorWeeklyAvailability]:
        rows = [
            TutorWeeklyAvailability(
                tutor_id=tutor_id, day_of_week=day, hour=hour, is_available=is_available
            )
            for day, hour in slots
        ]
        db.add_all(rows)
        db.commit()
        return rows

    return _make


@pytest.fixture
def make_invitation(db: Session) -> Callable[..., LessonInvitation]:
    def _make(
        proposed_times: Sequence[datetime],
        tutor_id: str = TUTOR_ID,
        student_id: str = STUDENT_ID,
        amount: Decimal = Decimal("120.00"),
        expires_at: Optional[datetime] = None,
        status: str = InvitationStatus.PENDING.value,
    ) -> LessonInvitation:
        invitation = LessonInvitation(
            tutor_id=tutor_id,
            student_id=student_id,
            proposed_times=list(proposed_times),
            amount=amount,
            status=status,
            expires_at=expires_at or NOW + timedelta(hours=24),
        )
        db.add(invitation)
        db.commit()
        return invitation

    return _make


@pytest.fixture
def client(db: Session, clock: FrozenClock) -> Iterator[TestClient]:
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
