from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.base.database import get_db, init_db
from app.base.models import InterviewerCreate, WeeklyAvailability
from app.main import app
from app.services.repository import SchedulingRepository
from app.utils.time_utils import local_now

# Sunday morning; the next day is a Monday.
NOW = datetime(2025, 8, 10, 9, 0)
MONDAY = date(2025, 8, 11)


def weekly(**days: List[Tuple[str, str]]) -> WeeklyAvailability:
    """weekly(monday=[("09:00", "12:00")]) -> WeeklyAvailability"""
    data: Dict[str, list] = {
        day: [{"start": start, "end": end} for start, end in ranges] for day, ranges in days.items()
    }
    return WeeklyAvailability.model_validate(data)


def next_weekday(weekday: int, after: Optional[date] = None) -> date:
    """First date strictly after `after` (default: today) falling on `weekday` (Monday=0)."""
    after = after or local_now().date()
    ahead = (weekday - after.weekday()) % 7 or 7
    return after + timedelta(days=ahead)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_interviewer(db):
    def _make(name="Asha", categories=("Frontend Developer",), technologies=("React", "TypeScript"),
              years=4, eligible=True, **days):
        if not days:
            days = {"monday": [("09:00", "12:00")]}
        profile = SchedulingRepository(db).create_interviewer(InterviewerCreate(
            name=name,
            skill_categories=list(categories),
            technologies=list(technologies),
            experience_years=years,
            is_eligible=eligible,
            weekly_availability=weekly(**days),
        ))
        db.commit()
        return profile
    return _make


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
