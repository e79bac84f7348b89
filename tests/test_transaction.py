# tests/test_transaction.py
"""Retrying unit-of-work runner: mocked sessions, then real SQLite sessions racing on version columns."""

import pytest
from datetime import datetime
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from app.database import create_tables
from app.exceptions import ConcurrencyConflict, InvalidTransition
from app.models.user import User
from app.models.zone import Zone
from app.services import report_service
from app.services.achievement_service import credit_points
from app.services.transaction import is_retryable, run_in_transaction


def integrity_error(message):
    return IntegrityError("INSERT ...", {}, Exception(message))


class TestRunInTransaction:
    def test_commits_on_success(self):
        db = MagicMock()
        assert run_in_transaction(db, lambda session, x: x * 2, 21) == 42
        db.commit.assert_called_once()
        db.rollback.assert_not_called()

    def test_retries_stale_data_then_succeeds(self):
        db = MagicMock()
        attempts = []

        def _credit(session):
            attempts.append(1)
            if len(attempts) < 3:
                raise StaleDataError("version mismatch")
            return "ok"

        assert run_in_transaction(db, _credit) == "ok"
        assert len(attempts) == 3
        assert db.rollback.call_count == 2
        db.commit.assert_called_once()

    def test_gives_up_with_concurrency_conflict(self):
        db = MagicMock()

        def _credit(session):
            raise StaleDataError("version mismatch")

        with pytest.raises(ConcurrencyConflict) as exc_info:
            run_in_transaction(db, _credit)
        assert exc_info.value.operation == "credit"
        db.commit.assert_not_called()

    def test_engine_errors_roll_back_and_propagate(self):
        db = MagicMock()

        def _verify(session):
            raise InvalidTransition("WasteReport", "resolved", "verified")

        with pytest.raises(InvalidTransition):
            run_in_transaction(db, _verify)
        db.rollback.assert_called_once()
        db.commit.assert_not_called()

    def test_duplicate_grant_is_retried(self):
        db = MagicMock()
        attempts = []

        def _grant(session):
            attempts.append(1)
            if len(attempts) == 1:
                raise integrity_error('duplicate key value violates unique constraint "uq_user_achievement"')
            return "granted"

        assert run_in_transaction(db, _grant) == "granted"
        assert len(attempts) == 2

    def test_other_constraint_violation_is_not_retried(self):
        db = MagicMock()
        attempts = []

        def _create(session):
            attempts.append(1)
            raise integrity_error("UNIQUE constraint failed: waste_collection_zones.sensor_id")

        with pytest.raises(IntegrityError):
            run_in_transaction(db, _create)
        assert len(attempts) == 1
        db.rollback.assert_called_once()


class TestIsRetryable:
    def test_classification(self):
        assert is_retryable(StaleDataError("stale"))
        assert is_retryable(integrity_error(
            "UNIQUE constraint failed: user_achievements.user_id, user_achievements.achievement_id"))
        assert is_retryable(OperationalError("UPDATE ...", {}, Exception("database is locked")))
        assert not is_retryable(integrity_error('insert or update violates foreign key constraint "fk_actor"'))
        assert not is_retryable(integrity_error("NOT NULL constraint failed: users.email"))
        assert not is_retryable(OperationalError("SELECT ...", {}, Exception("no such table: users")))
        assert not is_retryable(ValueError("bad level"))

    def test_real_constraint_violation_propagates(self, db, make_zone):
        make_zone(sensor_id="SENSOR-1")
        attempts = []

        def _add_zone(session):
            attempts.append(1)
            session.add(Zone(name="Twin", capacity_liters=500, current_fill_level=0,
                             sensor_id="SENSOR-1", created_at=datetime.utcnow()))
            session.flush()

        with pytest.raises(IntegrityError):
            run_in_transaction(db, _add_zone)
        assert len(attempts) == 1


@pytest.fixture
def file_sessions(tmp_path):
    """Two independent connections need a file database; in-memory SQLite is per connection."""
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False})
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


class TestOptimisticLocking:
    def test_concurrent_credit_forces_retry_and_keeps_both(self, file_sessions, monkeypatch):
        db = file_sessions()
        now = datetime.utcnow()
        citizen = User(name="Citizen", email="c@test.local", role="citizen", points=0, level=1,
                       is_active=True, created_at=now)
        admin = User(name="Admin", email="a@test.local", role="admin", points=0, level=1,
                     is_active=True, created_at=now)
        zone = Zone(name="Zone", capacity_liters=1000, current_fill_level=0, created_at=now)
        db.add_all([citizen, admin, zone])
        db.commit()

        report = report_service.submit_report(db, citizen.id, zone.id, 30)
        report_service.verify_report(db, report.id, admin.id)

        calls = []

        def credit_after_rival_commit(user, amount):
            calls.append(amount)
            if len(calls) == 1:
                rival = file_sessions()
                credit_points(rival.get(User, user.id), 50)
                rival.commit()
                rival.close()
            return credit_points(user, amount)

        monkeypatch.setattr(report_service, "credit_points", credit_after_rival_commit)
        report_service.resolve_report(db, report.id, admin.id)

        assert calls == [10, 10]
        db.refresh(citizen)
        db.refresh(report)
        assert report.status == "resolved"
        assert citizen.points == 50 + 10
        db.close()

    def test_stale_zone_write_is_retried(self, file_sessions, monkeypatch):
        db = file_sessions()
        now = datetime.utcnow()
        citizen = User(name="Citizen", email="c@test.local", role="citizen", points=0, level=1,
                       is_active=True, created_at=now)
        admin = User(name="Admin", email="a@test.local", role="admin", points=0, level=1,
                     is_active=True, created_at=now)
        zone = Zone(name="Zone", capacity_liters=1000, current_fill_level=0, created_at=now)
        db.add_all([citizen, admin, zone])
        db.commit()
        report = report_service.submit_report(db, citizen.id, zone.id, 40)

        real_estimate = report_service.estimate_fill
        calls = []

        def estimate_after_rival_commit(target, level, verified=False):
            calls.append(level)
            if len(calls) == 1:
                rival = file_sessions()
                rival_zone = rival.get(Zone, target.id)
                rival_zone.name = "Renamed"
                rival.commit()
                rival.close()
            return real_estimate(target, level, verified)

        monkeypatch.setattr(report_service, "estimate_fill", estimate_after_rival_commit)
        report_service.verify_report(db, report.id, admin.id, corrected_fill_level=80)

        assert len(calls) == 2
        db.refresh(zone)
        assert zone.name == "Renamed"
        assert zone.current_fill_level == 800
        db.close()
