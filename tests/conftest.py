# tests/conftest.py
"""Shared fixtures: in-memory SQLite session and small record factories."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import itertools
import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database import create_tables
from app.models.user import User
from app.models.zone import Zone
from app.services.achievement_service import seed_achievements
from app.services.notification_service import RecordingNotificationSink


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role="citizen", **overrides):
        n = next(counter)
        fields = dict(name=f"{role} {n}", email=f"{role}{n}@test.local", role=role,
                      points=0, level=1, is_active=True, created_at=datetime.utcnow())
        fields.update(overrides)
        user = User(**fields)
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def make_zone(db):
    counter = itertools.count(1)

    def _make(capacity_liters=1000, zone_type="residential", fill_liters=0, **overrides):
        n = next(counter)
        fields = dict(name=f"Zone {n}", capacity_liters=capacity_liters, zone_type=zone_type,
                      current_fill_level=fill_liters, priority_level="low", is_active=True,
                      latitude=3.86, longitude=11.52, created_at=datetime.utcnow())
        fields.update(overrides)
        zone = Zone(**fields)
        db.add(zone)
        db.commit()
        return zone
    return _make


@pytest.fixture
def citizen(make_user):
    return make_user("citizen")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def collector(make_user):
    return make_user("collector")


@pytest.fixture
def catalog(db):
    seed_achievements(db)
    from app.models.achievement import Achievement
    return {a.name: a for a in db.query(Achievement).all()}


@pytest.fixture
def sink():
    return RecordingNotificationSink()
