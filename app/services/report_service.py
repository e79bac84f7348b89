# app/services/report_service.py
"""
Report Lifecycle.

    pending ──verify──▶ verified ──resolve──▶ resolved
       └──────reject──▶ rejected

resolved and rejected are terminal. Each transition writes exactly one ReportAction row.
Repeating a transition that already happened raises AlreadyInState and writes nothing.
Resolving credits points to the reporter and runs the achievement evaluator in the same unit.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.config import settings
from app.exceptions import NotFound
from app.models.enums import PriorityLevel, ReportActionType, ReportStatus
from app.models.report_action import ReportAction
from app.models.user import User
from app.models.waste_report import WasteReport
from app.models.zone import Zone
from app.services.achievement_service import compute_activity_counters, credit_points, grant_achievements, lock_user
from app.services.fill_service import estimate_fill, fill_percentage, reset_fill, validate_level
from app.services.notification_service import REPORT_RESOLVED, DomainEvent, resolve_sink
from app.services.priority_service import refresh_priority
from app.services.schedule_service import schedule_if_urgent
from app.services.state_machine import REPORT_TRANSITIONS, check_transition
from app.services.transaction import run_in_transaction
from app.utils.logger import get_logger

logger = get_logger(__name__, "REPORT")

ENTITY = "WasteReport"


def _get_report(db: Session, report_id: int) -> WasteReport:
    report = db.query(WasteReport).filter(WasteReport.id == report_id).first()
    if not report:
        raise NotFound(ENTITY, report_id)
    return report


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise NotFound("User", user_id)
    return user


def _get_zone(db: Session, zone_id: int, lock: bool = False) -> Zone:
    q = db.query(Zone).filter(Zone.id == zone_id)
    if lock:
        q = q.with_for_update()
    zone = q.first()
    if not zone:
        raise NotFound("Zone", zone_id)
    return zone


def _record_action(db: Session, report: WasteReport, user_id: int, action_type: ReportActionType,
                   description: str, data: dict = None, performed_at: datetime = None) -> ReportAction:
    action = ReportAction(
        report_id=report.id,
        user_id=user_id,
        action_type=action_type.value,
        description=description,
        data=data or {},
        performed_at=performed_at or datetime.utcnow(),
    )
    db.add(action)
    return action


def compute_points(db: Session, report: WasteReport) -> int:
    """Priority points, plus a bonus for the reporter's first report in this zone."""
    points = settings.REPORT_POINTS.get(report.priority, settings.REPORT_POINTS[PriorityLevel.LOW.value])
    earlier = (
        db.query(WasteReport.id)
        .filter(
            WasteReport.user_id == report.user_id,
            WasteReport.zone_id == report.zone_id,
            WasteReport.id < report.id,
        )
        .first()
    )
    if earlier is None:
        points += settings.FIRST_ZONE_REPORT_BONUS
    return points


# ── Create ───────────────────────────────────────────────────────────────────
def _submit_report(db: Session, reporter_id: int, zone_id: int, fill_level: float,
                   description: str = None, photos: list = None,
                   latitude: float = None, longitude: float = None):
    validate_level(fill_level)
    reporter = _get_user(db, reporter_id)
    zone = _get_zone(db, zone_id)
    if not zone.is_active:
        raise NotFound("Zone", zone_id)

    # unverified reports only ever raise the level, so no zone lock is needed
    estimate_fill(zone, fill_level, verified=False)
    priority = refresh_priority(zone)

    now = datetime.utcnow()
    report = WasteReport(
        user_id=reporter.id,
        zone_id=zone.id,
        district_id=zone.district_id,
        fill_level=fill_level,
        priority=priority.value,
        description=description,
        photos=photos or [],
        latitude=latitude if latitude is not None else zone.latitude,
        longitude=longitude if longitude is not None else zone.longitude,
        status=ReportStatus.PENDING.value,
        points_awarded=0,
        created_at=now,
        updated_at=now,
    )
    db.add(report)
    db.flush()

    _record_action(db, report, reporter.id, ReportActionType.CREATED, "Report submitted",
                   {"fill_level": fill_level}, now)
    reporter.last_activity_at = now
    schedule_if_urgent(db, zone)

    logger.info(f"{report.id} submitted by user={reporter.id} zone={zone.id} "
                f"{fill_level}% -> zone {fill_percentage(zone):.1f}% prio={priority.value}")
    return report


def submit_report(db: Session, reporter_id: int, zone_id: int, fill_level: float,
                  description: str = None, photos: list = None,
                  latitude: float = None, longitude: float = None) -> WasteReport:
    return run_in_transaction(db, _submit_report, reporter_id, zone_id, fill_level,
                              description, photos, latitude, longitude)


# ── Verify ───────────────────────────────────────────────────────────────────
def _verify_report(db: Session, report_id: int, admin_id: int,
                   corrected_fill_level: Optional[float] = None, comment: str = None):
    report = _get_report(db, report_id)
    check_transition(ENTITY, report.status, ReportStatus.VERIFIED, REPORT_TRANSITIONS)
    admin = _get_user(db, admin_id)

    level = report.fill_level if corrected_fill_level is None else validate_level(corrected_fill_level)
    zone = _get_zone(db, report.zone_id, lock=True)
    estimate_fill(zone, level, verified=True)
    priority = refresh_priority(zone)

    now = datetime.utcnow()
    data = {"fill_level": level, "reported_fill_level": report.fill_level}
    report.fill_level = level
    report.priority = priority.value
    report.status = ReportStatus.VERIFIED.value
    report.verified_by = admin.id
    report.verified_at = now
    report.updated_at = now

    _record_action(db, report, admin.id, ReportActionType.VERIFIED, comment or "Report verified", data, now)
    schedule_if_urgent(db, zone)

    logger.info(f"{report.id} verified by admin={admin.id}: zone={zone.id} "
                f"{fill_percentage(zone):.1f}% prio={priority.value}")
    return report


def verify_report(db: Session, report_id: int, admin_id: int,
                  corrected_fill_level: Optional[float] = None, comment: str = None) -> WasteReport:
    return run_in_transaction(db, _verify_report, report_id, admin_id, corrected_fill_level, comment)


# ── Reject ───────────────────────────────────────────────────────────────────
def _reject_report(db: Session, report_id: int, admin_id: int, reason: str):
    report = _get_report(db, report_id)
    check_transition(ENTITY, report.status, ReportStatus.REJECTED, REPORT_TRANSITIONS)
    if not reason or not reason.strip():
        raise ValueError("A reason is required to reject a report")
    admin = _get_user(db, admin_id)

    now = datetime.utcnow()
    report.status = ReportStatus.REJECTED.value
    report.rejection_reason = reason.strip()
    report.updated_at = now
    _record_action(db, report, admin.id, ReportActionType.REJECTED, "Report rejected",
                   {"reason": report.rejection_reason}, now)

    logger.info(f"{report.id} rejected by admin={admin.id}: {report.rejection_reason}")
    return report


def reject_report(db: Session, report_id: int, admin_id: int, reason: str) -> WasteReport:
    return run_in_transaction(db, _reject_report, report_id, admin_id, reason)


# ── Resolve ──────────────────────────────────────────────────────────────────
def _mark_resolved(db: Session, report: WasteReport, actor_id: int, sink, now: datetime,
                   collection_event: bool) -> WasteReport:
    points = compute_points(db, report)
    report.status = ReportStatus.RESOLVED.value
    report.resolved_by = actor_id
    report.resolved_at = now
    report.points_awarded = points
    report.updated_at = now

    reporter = lock_user(db, report.user_id)
    credit_points(reporter, points)
    _record_action(db, report, actor_id, ReportActionType.RESOLVED, "Report resolved",
                   {"points_awarded": points, "collection_event": collection_event}, now)
    sink.publish(DomainEvent(
        event_type=REPORT_RESOLVED,
        user_id=reporter.id,
        title="Your report was resolved",
        message=f"Report #{report.id} was resolved. You earned {points} points.",
        data={"report_id": report.id, "zone_id": report.zone_id, "points": points},
        notification_type="success",
        priority=report.priority,
    ))
    db.flush()

    grant_achievements(db, reporter, compute_activity_counters(db, reporter.id), sink)
    logger.info(f"{report.id} resolved by user={actor_id}: +{points} pts to user={reporter.id}")
    return report


def _resolve_report(db: Session, report_id: int, actor_id: int, collection_event: bool = False,
                    notifier=None):
    report = _get_report(db, report_id)
    check_transition(ENTITY, report.status, ReportStatus.RESOLVED, REPORT_TRANSITIONS)
    actor = _get_user(db, actor_id)

    now = datetime.utcnow()
    if collection_event:
        zone = _get_zone(db, report.zone_id, lock=True)
        reset_fill(zone, now)
        refresh_priority(zone)
    return _mark_resolved(db, report, actor.id, resolve_sink(db, notifier), now, collection_event)


def resolve_report(db: Session, report_id: int, actor_id: int, collection_event: bool = False,
                   notifier=None) -> WasteReport:
    return run_in_transaction(db, _resolve_report, report_id, actor_id, collection_event,
                              notifier=notifier)


def resolve_verified_for_zone(db: Session, zone: Zone, actor_id: int, sink, now: datetime = None) -> list:
    """Resolve every verified report of a zone that was just emptied. Caller owns the transaction."""
    now = now or datetime.utcnow()
    reports = (
        db.query(WasteReport)
        .filter(WasteReport.zone_id == zone.id, WasteReport.status == ReportStatus.VERIFIED.value)
        .order_by(WasteReport.id)
        .all()
    )
    return [_mark_resolved(db, report, actor_id, sink, now, True) for report in reports]


# ── Comments & queries ───────────────────────────────────────────────────────
def _add_comment(db: Session, report_id: int, user_id: int, text: str):
    if not text or not text.strip():
        raise ValueError("Comment text is required")
    report = _get_report(db, report_id)
    user = _get_user(db, user_id)
    return _record_action(db, report, user.id, ReportActionType.COMMENTED, text.strip())


def add_comment(db: Session, report_id: int, user_id: int, text: str) -> ReportAction:
    """Audit-only entry; allowed in every state, including terminal ones."""
    return run_in_transaction(db, _add_comment, report_id, user_id, text)


def get_report(db: Session, report_id: int) -> WasteReport:
    return _get_report(db, report_id)


def list_reports(db: Session, status: str = None, zone_id: int = None, user_id: int = None,
                 limit: int = 50):
    q = db.query(WasteReport)
    if status:
        q = q.filter(WasteReport.status == status)
    if zone_id:
        q = q.filter(WasteReport.zone_id == zone_id)
    if user_id:
        q = q.filter(WasteReport.user_id == user_id)
    return q.order_by(WasteReport.created_at.desc(), WasteReport.id.desc()).limit(limit).all()


def report_history(db: Session, report_id: int):
    _get_report(db, report_id)
    return (
        db.query(ReportAction)
        .filter(ReportAction.report_id == report_id)
        .order_by(ReportAction.performed_at, ReportAction.id)
        .all()
    )
