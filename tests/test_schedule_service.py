# tests/test_schedule_service.py
"""Schedule coordinator: one active schedule per zone, assignment rules, collection flow."""

import itertools
import pytest
from datetime import datetime, timedelta
from app.exceptions import AlreadyInState, InvalidAssignee, InvalidTransition, NotFound
from app.models.collection_schedule import CollectionSchedule
from app.models.enums import ACTIVE_SCHEDULE_STATUSES
from app.models.notification import UserNotification
from app.services import report_service, schedule_service


def active_count(db, zone_id):
    return (db.query(CollectionSchedule)
            .filter(CollectionSchedule.zone_id == zone_id,
                    CollectionSchedule.status.in_(ACTIVE_SCHEDULE_STATUSES))
            .count())


class TestEnsureScheduled:
    def test_twice_returns_same_schedule(self, db, make_zone):
        zone = make_zone()
        first = schedule_service.ensure_scheduled(db, zone.id)
        second = schedule_service.ensure_scheduled(db, zone.id)
        assert first.id == second.id
        assert db.query(CollectionSchedule).count() == 1

    @pytest.mark.parametrize("priority,hours", [("high", 24), ("medium", 72), ("low", 168)])
    def test_offset_follows_priority(self, db, make_zone, priority, hours):
        zone = make_zone(priority_level=priority)
        before = datetime.utcnow()
        schedule = schedule_service.ensure_scheduled(db, zone.id)
        expected = before + timedelta(hours=hours)
        assert abs((schedule.scheduled_at - expected).total_seconds()) < 60
        db.refresh(zone)
        assert zone.next_collection_at == schedule.scheduled_at

    def test_explicit_time_kept(self, db, make_zone):
        when = datetime(2030, 1, 15, 8, 0)
        schedule = schedule_service.ensure_scheduled(db, make_zone().id, scheduled_at=when, notes="Morning round")
        assert schedule.scheduled_at == when
        assert schedule.notes == "Morning round"
        assert schedule.status == "pending"

    def test_unknown_zone(self, db):
        with pytest.raises(NotFound):
            schedule_service.ensure_scheduled(db, 777)

    def test_new_schedule_after_cancel(self, db, make_zone):
        zone = make_zone()
        first = schedule_service.ensure_scheduled(db, zone.id)
        schedule_service.cancel_schedule(db, first.id, reason="Truck broken")
        second = schedule_service.ensure_scheduled(db, zone.id)
        assert second.id != first.id
        assert first.status == "cancelled"
        assert "Truck broken" in first.notes


class TestAtMostOneActive:
    OPS = ("ensure", "start", "complete", "cancel")

    def run(self, db, zone, op):
        active = schedule_service.active_schedule_for(db, zone.id)
        if op == "ensure":
            schedule_service.ensure_scheduled(db, zone.id)
        elif active is None:
            return
        elif op == "start":
            schedule_service.start_schedule(db, active.id)
        elif op == "complete":
            schedule_service.complete_schedule(db, active.id, 20)
        else:
            schedule_service.cancel_schedule(db, active.id)

    def test_every_sequence_keeps_invariant(self, db, make_zone):
        for ops in itertools.product(self.OPS, repeat=4):
            zone = make_zone()
            for op in ops:
                try:
                    self.run(db, zone, op)
                except (AlreadyInState, InvalidTransition):
                    pass
                assert active_count(db, zone.id) <= 1, ops


class TestTransitions:
    def test_start_twice(self, db, make_zone):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        schedule_service.start_schedule(db, schedule.id)
        with pytest.raises(AlreadyInState):
            schedule_service.start_schedule(db, schedule.id)

    def test_complete_requires_in_progress(self, db, make_zone):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        with pytest.raises(InvalidTransition):
            schedule_service.complete_schedule(db, schedule.id, 10)

    def test_cancel_from_in_progress(self, db, make_zone):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        schedule_service.start_schedule(db, schedule.id)
        schedule_service.cancel_schedule(db, schedule.id)
        assert schedule.status == "cancelled"

    def test_completed_is_terminal(self, db, make_zone):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        schedule_service.start_schedule(db, schedule.id)
        schedule_service.complete_schedule(db, schedule.id, 15)
        with pytest.raises(InvalidTransition):
            schedule_service.cancel_schedule(db, schedule.id)
        with pytest.raises(AlreadyInState):
            schedule_service.complete_schedule(db, schedule.id, 15)

    def test_cancel_clears_next_collection(self, db, make_zone):
        zone = make_zone()
        schedule = schedule_service.ensure_scheduled(db, zone.id)
        schedule_service.cancel_schedule(db, schedule.id)
        db.refresh(zone)
        assert zone.next_collection_at is None


class TestAssign:
    def test_assign_collector(self, db, make_zone, collector, sink):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        schedule_service.assign_schedule(db, schedule.id, collector.id, notifier=sink)
        assert schedule.assigned_to == collector.id
        events = sink.of_type("schedule_assigned")
        assert len(events) == 1 and events[0].user_id == collector.id

    @pytest.mark.parametrize("role", ["citizen", "admin"])
    def test_non_collector_rejected(self, db, make_zone, make_user, role):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        with pytest.raises(InvalidAssignee):
            schedule_service.assign_schedule(db, schedule.id, make_user(role).id)
        db.refresh(schedule)
        assert schedule.assigned_to is None

    def test_inactive_collector_rejected(self, db, make_zone, make_user):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        with pytest.raises(InvalidAssignee):
            schedule_service.assign_schedule(db, schedule.id, make_user("collector", is_active=False).id)

    def test_same_collector_twice(self, db, make_zone, collector):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        schedule_service.assign_schedule(db, schedule.id, collector.id)
        with pytest.raises(AlreadyInState):
            schedule_service.assign_schedule(db, schedule.id, collector.id)

    def test_cancelled_schedule_cannot_be_assigned(self, db, make_zone, collector):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        schedule_service.cancel_schedule(db, schedule.id)
        with pytest.raises(InvalidTransition):
            schedule_service.assign_schedule(db, schedule.id, collector.id)


class TestCompleteCollection:
    def test_completion_empties_zone_and_resolves_reports(self, db, make_zone, citizen, admin, collector, catalog):
        zone = make_zone()
        report = report_service.submit_report(db, citizen.id, zone.id, 95)
        report_service.verify_report(db, report.id, admin.id)
        schedule = schedule_service.active_schedule_for(db, zone.id)
        assert schedule is not None

        schedule_service.assign_schedule(db, schedule.id, collector.id)
        schedule_service.start_schedule(db, schedule.id)
        before = datetime.utcnow()
        schedule_service.complete_schedule(db, schedule.id, actual_duration_minutes=25)

        db.refresh(zone)
        assert schedule.status == "completed"
        assert schedule.completed_at is not None
        assert schedule.actual_duration_minutes == 25
        assert zone.current_fill_level == 0
        assert zone.last_emptied_at >= before
        assert zone.priority_level == "low"
        assert zone.next_collection_at >= before + timedelta(hours=167)

        db.refresh(report)
        assert report.status == "resolved"
        assert report.resolved_by == collector.id
        assert report.points_awarded == 25
        db.refresh(citizen)
        assert citizen.points == 25 + 10   # report + Premier Pas

        event_types = {n.event_type for n in db.query(UserNotification).all()}
        assert event_types == {"schedule_assigned", "report_resolved", "achievement_earned"}

    def test_pending_reports_stay_open(self, db, make_zone, citizen, collector):
        zone = make_zone()
        report = report_service.submit_report(db, citizen.id, zone.id, 95)
        schedule = schedule_service.active_schedule_for(db, zone.id)
        schedule_service.start_schedule(db, schedule.id)
        schedule_service.complete_schedule(db, schedule.id, 10, completed_by=collector.id)
        db.refresh(report)
        assert report.status == "pending"

    def test_negative_duration_rejected(self, db, make_zone):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        schedule_service.start_schedule(db, schedule.id)
        with pytest.raises(ValueError):
            schedule_service.complete_schedule(db, schedule.id, -5)
        db.refresh(schedule)
        assert schedule.status == "in_progress"

    def test_unknown_completer_changes_nothing(self, db, make_zone, citizen, admin):
        zone = make_zone()
        report = report_service.submit_report(db, citizen.id, zone.id, 95)
        report_service.verify_report(db, report.id, admin.id)
        schedule = schedule_service.ensure_scheduled(db, zone.id)
        schedule_service.start_schedule(db, schedule.id)

        with pytest.raises(NotFound):
            schedule_service.complete_schedule(db, schedule.id, 10, completed_by=9999)

        db.refresh(schedule)
        db.refresh(report)
        db.refresh(zone)
        assert schedule.status == "in_progress"
        assert report.status == "verified"
        assert report.resolved_by is None
        assert zone.current_fill_level == 950
        assert [a.action_type for a in report_service.report_history(db, report.id)] == ["created", "verified"]

    def test_deactivated_assignee_cannot_complete(self, db, make_zone, collector):
        schedule = schedule_service.ensure_scheduled(db, make_zone().id)
        schedule_service.assign_schedule(db, schedule.id, collector.id)
        schedule_service.start_schedule(db, schedule.id)
        collector.is_active = False
        db.commit()

        with pytest.raises(NotFound):
            schedule_service.complete_schedule(db, schedule.id, 10)


class TestQueue:
    def test_queue_orders_by_priority_then_fill(self, db, make_zone):
        low = make_zone(fill_liters=100, priority_level="low", name="low")
        high = make_zone(fill_liters=950, priority_level="high", name="high")
        medium = make_zone(fill_liters=750, priority_level="medium", name="medium")
        fuller_high = make_zone(fill_liters=990, priority_level="high", name="fuller")
        for zone in (low, high, medium, fuller_high):
            schedule_service.ensure_scheduled(db, zone.id)

        queue = schedule_service.collection_queue(db)
        assert [s.zone_id for s in queue] == [fuller_high.id, high.id, medium.id, low.id]
