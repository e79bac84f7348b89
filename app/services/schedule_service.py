# app/services/schedule_service.py
"""
Schedule Coordinator.
Keeps at most one pending/in_progress CollectionSchedule per zone and walks schedules through
pending -> in_progress -> completed (or -> cancelled).

The read-check-create in schedule_zone() runs with the zone row locked (SELECT ... FOR UPDATE)
and bumps the zone's version, so two concurrent creators cannot both commit.
"""

from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from app.config import settings
from app.exceptions import AlreadyInState, InvalidAssignee, InvalidTransition, NotFound
from app.models.collection_schedule import CollectionSchedule
from app.models.enums import ACTIVE_SCHEDULE_STATUSES, PriorityLevel, ScheduleStatus
from app.models.user import User
from app.models.zone import Zone
from app.services.fill_service import fill_percentage, reset_fill
from app.services.notification_service import SCHEDULE_ASSIGNED, DomainEvent, resolve_sink
from app.services.priority_service import needs_urgent_collection, refresh_priority
from app.services.state_machine import SCHEDULE_TRANSITIONS, check_transition, is_terminal
from app.services.transaction import run_in_transaction
from app.utils.logger import get_logger

logger = get_logger(__name__, "SCHEDULE")

ENTITY = "CollectionSchedule"


def schedule_offset(priority) -> timedelta:
    try:
        level = PriorityLevel(priority).value
    except ValueError:
        level = PriorityLevel.LOW.value
    return timedelta(hours=settings.SCHEDULE_OFFSET_HOURS[level])


def _lock_zone(db: Session, zone_id: int) -> Zone:
    zone = db.query(Zone).filter(Zone.id == zone_id).with_for_update().first()
    if not zone:
        raise NotFound("Zone", zone_id)
    return zone


def _get_schedule(db: Session, schedule_id: int) -> CollectionSchedule:
    schedule = db.query(CollectionSchedule).filter(CollectionSchedule.id == schedule_id).first()
    if not schedule:
        raise NotFound(ENTITY, schedule_id)
    return schedule


def active_schedule_for(db: Session, zone_id: int) -> Optional[CollectionSchedule]:
    return (
        db.query(CollectionSchedule)
        .filter(
            CollectionSchedule.zone_id == zone_id,
            CollectionSchedule.status.in_(ACTIVE_SCHEDULE_STATUSES),
        )
        .order_by(CollectionSchedule.scheduled_at)
        .first()
    )


def schedule_zone(db: Session, zone: Zone, scheduled_at: datetime = None, notes: str = None,
                  estimated_duration_minutes: int = None) -> CollectionSchedule:
    """Return the zone's active schedule, creating one if none exists. Caller holds the zone lock."""
    existing = active_schedule_for(db, zone.id)
    if existing:
        logger.debug(f"zone={zone.id} already has schedule {existing.id} ({existing.status})")
        return existing

    now = datetime.utcnow()
    when = scheduled_at or now + schedule_offset(zone.priority_level)
    schedule = CollectionSchedule(
        zone_id=zone.id,
        scheduled_at=when,
        status=ScheduleStatus.PENDING.value,
        notes=notes,
        estimated_duration_minutes=estimated_duration_minutes or settings.DEFAULT_COLLECTION_MINUTES,
        created_at=now,
        updated_at=now,
    )
    db.add(schedule)
    zone.next_collection_at = when
    zone.updated_at = now
    db.flush()
    logger.info(f"Created {schedule.id} for zone={zone.id} prio={zone.priority_level} at {when:%Y-%m-%d %H:%M}")
    return schedule


def schedule_if_urgent(db: Session, zone: Zone) -> Optional[CollectionSchedule]:
    """Urgency signal from the priority classifier. No-op when auto scheduling is off."""
    if not settings.AUTO_SCHEDULE_URGENT_ZONES or not needs_urgent_collection(zone):
        return None
    return schedule_zone(db, zone)


def _ensure_scheduled(db: Session, zone_id: int, scheduled_at: datetime = None, notes: str = None,
                      estimated_duration_minutes: int = None):
    zone = _lock_zone(db, zone_id)
    return schedule_zone(db, zone, scheduled_at, notes, estimated_duration_minutes)


def ensure_scheduled(db: Session, zone_id: int, scheduled_at: datetime = None, notes: str = None,
                     estimated_duration_minutes: int = None) -> CollectionSchedule:
    return run_in_transaction(db, _ensure_scheduled, zone_id, scheduled_at, notes, estimated_duration_minutes)


def _assign_schedule(db: Session, schedule_id: int, collector_id: int, notifier=None):
    schedule = _get_schedule(db, schedule_id)
    if is_terminal(schedule.status, SCHEDULE_TRANSITIONS):
        raise InvalidTransition(ENTITY, schedule.status, "assigned")

    collector = db.query(User).filter(User.id == collector_id).first()
    if not collector:
        raise NotFound("User", collector_id)
    if not collector.is_collector or not collector.is_active:
        raise InvalidAssignee(collector.id, collector.role)
    if schedule.assigned_to == collector.id:
        raise AlreadyInState(ENTITY, f"assigned to {collector.id}")

    schedule.assigned_to = collector.id
    schedule.updated_at = datetime.utcnow()
    zone = db.query(Zone).filter(Zone.id == schedule.zone_id).first()
    zone_name = zone.name if zone else f"zone {schedule.zone_id}"

    resolve_sink(db, notifier).publish(DomainEvent(
        event_type=SCHEDULE_ASSIGNED,
        user_id=collector.id,
        title="New collection assigned",
        message=f"Collection at {zone_name} scheduled for {schedule.scheduled_at:%Y-%m-%d %H:%M}",
        data={"schedule_id": schedule.id, "zone_id": schedule.zone_id},
        priority=zone.priority_level if zone else "medium",
    ))
    logger.info(f"{schedule.id} assigned to collector={collector.id}")
    return schedule


def assign_schedule(db: Session, schedule_id: int, collector_id: int, notifier=None) -> CollectionSchedule:
    return run_in_transaction(db, _assign_schedule, schedule_id, collector_id, notifier=notifier)


def _start_schedule(db: Session, schedule_id: int):
    schedule = _get_schedule(db, schedule_id)
    check_transition(ENTITY, schedule.status, ScheduleStatus.IN_PROGRESS, SCHEDULE_TRANSITIONS)
    schedule.status = ScheduleStatus.IN_PROGRESS.value
    schedule.updated_at = datetime.utcnow()
    logger.info(f"{schedule.id} started (zone={schedule.zone_id})")
    return schedule


def start_schedule(db: Session, schedule_id: int) -> CollectionSchedule:
    return run_in_transaction(db, _start_schedule, schedule_id)


def _complete_schedule(db: Session, schedule_id: int, actual_duration_minutes: int = None,
                       completed_by: int = None, notifier=None):
    schedule = _get_schedule(db, schedule_id)
    check_transition(ENTITY, schedule.status, ScheduleStatus.COMPLETED, SCHEDULE_TRANSITIONS)
    if actual_duration_minutes is not None and actual_duration_minutes < 0:
        raise ValueError("actual_duration_minutes cannot be negative")

    actor_id = completed_by or schedule.assigned_to
    if actor_id:
        actor = db.query(User).filter(User.id == actor_id).first()
        if not actor or not actor.is_active:
            raise NotFound("User", actor_id)

    now = datetime.utcnow()
    schedule.status = ScheduleStatus.COMPLETED.value
    schedule.completed_at = now
    schedule.actual_duration_minutes = actual_duration_minutes
    schedule.updated_at = now

    zone = _lock_zone(db, schedule.zone_id)
    reset_fill(zone, now)
    new_priority = refresh_priority(zone)
    zone.next_collection_at = now + schedule_offset(new_priority)

    resolved = []
    if settings.RESOLVE_REPORTS_ON_COLLECTION:
        if actor_id:
            from app.services.report_service import resolve_verified_for_zone
            resolved = resolve_verified_for_zone(db, zone, actor_id, resolve_sink(db, notifier), now)
        else:
            logger.warning(f"{schedule.id} completed without a collector, reports left open")

    logger.info(f"{schedule.id} completed in {actual_duration_minutes} min, "
                f"zone={zone.id} emptied, {len(resolved)} report(s) resolved")
    return schedule


def complete_schedule(db: Session, schedule_id: int, actual_duration_minutes: int = None,
                      completed_by: int = None, notifier=None) -> CollectionSchedule:
    return run_in_transaction(db, _complete_schedule, schedule_id, actual_duration_minutes,
                              completed_by, notifier=notifier)


def _cancel_schedule(db: Session, schedule_id: int, reason: str = None):
    schedule = _get_schedule(db, schedule_id)
    check_transition(ENTITY, schedule.status, ScheduleStatus.CANCELLED, SCHEDULE_TRANSITIONS)
    now = datetime.utcnow()
    schedule.status = ScheduleStatus.CANCELLED.value
    schedule.updated_at = now
    if reason:
        schedule.notes = f"{schedule.notes}\n{reason}" if schedule.notes else reason

    zone = _lock_zone(db, schedule.zone_id)
    if zone.next_collection_at == schedule.scheduled_at:
        zone.next_collection_at = None
        zone.updated_at = now
    logger.info(f"{schedule.id} cancelled (zone={schedule.zone_id})")
    return schedule


def cancel_schedule(db: Session, schedule_id: int, reason: str = None) -> CollectionSchedule:
    return run_in_transaction(db, _cancel_schedule, schedule_id, reason)


def get_schedule(db: Session, schedule_id: int) -> CollectionSchedule:
    return _get_schedule(db, schedule_id)


def list_schedules(db: Session, status: str = None, zone_id: int = None, assigned_to: int = None,
                   limit: int = 100):
    q = db.query(CollectionSchedule)
    if status:
        q = q.filter(CollectionSchedule.status == status)
    if zone_id:
        q = q.filter(CollectionSchedule.zone_id == zone_id)
    if assigned_to:
        q = q.filter(CollectionSchedule.assigned_to == assigned_to)
    return q.order_by(CollectionSchedule.scheduled_at).limit(limit).all()


def collection_queue(db: Session, limit: int = 100) -> list:
    """Active schedules in servicing order: priority, then fill, then planned time."""
    rows = (
        db.query(CollectionSchedule, Zone)
        .join(Zone, Zone.id == CollectionSchedule.zone_id)
        .filter(CollectionSchedule.status.in_(ACTIVE_SCHEDULE_STATUSES))
        .all()
    )

    def sort_key(row):
        schedule, zone = row
        try:
            rank = PriorityLevel(zone.priority_level).rank
        except ValueError:
            rank = 0
        return (-rank, -fill_percentage(zone), schedule.scheduled_at)

    return [schedule for schedule, _ in sorted(rows, key=sort_key)][:limit]
