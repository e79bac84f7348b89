# app/services/achievement_service.py
"""
Achievement Evaluator + point crediting.

evaluate_achievements() compares a user's activity counters against every active catalog entry
the user has not earned yet and grants all qualifying ones in a single flush, so either every
new grant (and its point credit) lands or none does. The (user, achievement) unique constraint
turns a concurrent double grant into an IntegrityError, which run_in_transaction retries.
"""

from dataclasses import dataclass, asdict, replace
from datetime import datetime, date, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from app.config import settings
from app.exceptions import NotFound
from app.models.achievement import Achievement, UserAchievement
from app.models.enums import ConditionType, NotificationType, ReportStatus
from app.models.user import User
from app.models.waste_report import WasteReport
from app.services.notification_service import ACHIEVEMENT_EARNED, DomainEvent, resolve_sink
from app.services.transaction import run_in_transaction
from app.utils.logger import get_logger

logger = get_logger(__name__, "ACHIEVEMENT")
points_logger = get_logger(__name__, "POINTS")

VALIDATED_STATUSES = (ReportStatus.VERIFIED.value, ReportStatus.RESOLVED.value)

ACHIEVEMENT_CATALOG = [
    {"name": "🌱 Premier Pas", "description": "Effectuer votre premier signalement de poubelle",
     "icon": "leaf", "badge_color": "#10b981", "points_required": 10,
     "condition_type": "reports_count", "condition_value": 1},
    {"name": "🔥 Citoyen Actif", "description": "Effectuer 10 signalements validés",
     "icon": "fire", "badge_color": "#f59e0b", "points_required": 100,
     "condition_type": "reports_count", "condition_value": 10},
    {"name": "⚡ Réactivité", "description": "Effectuer 30 signalements en une semaine",
     "icon": "zap", "badge_color": "#eab308", "points_required": 400,
     "condition_type": "reports_count", "condition_value": 30},
    {"name": "⭐ Éco-Héros", "description": "Effectuer 50 signalements validés",
     "icon": "star", "badge_color": "#3b82f6", "points_required": 500,
     "condition_type": "reports_count", "condition_value": 50},
    {"name": "👑 Champion Environnemental", "description": "Effectuer 100 signalements validés",
     "icon": "crown", "badge_color": "#8b5cf6", "points_required": 1000,
     "condition_type": "reports_count", "condition_value": 100},
    {"name": "💎 Légende Verte", "description": "Effectuer 500 signalements validés",
     "icon": "gem", "badge_color": "#ef4444", "points_required": 5000,
     "condition_type": "reports_count", "condition_value": 500},
    {"name": "🎯 Précision", "description": "Atteindre 1000 points",
     "icon": "target", "badge_color": "#06b6d4", "points_required": 1000,
     "condition_type": "points_earned", "condition_value": 1000},
    {"name": "🔄 Régularité", "description": "Effectuer des signalements 7 jours consécutifs",
     "icon": "refresh-cw", "badge_color": "#84cc16", "points_required": 200,
     "condition_type": "consecutive_days", "condition_value": 7},
    {"name": "🗺️ Explorateur", "description": "Signaler dans 10 zones différentes",
     "icon": "map", "badge_color": "#f97316", "points_required": 300,
     "condition_type": "zone_coverage", "condition_value": 10},
    {"name": "🌍 Ambassadeur Écologique", "description": "Signaler dans 25 zones différentes",
     "icon": "globe", "badge_color": "#14b8a6", "points_required": 750,
     "condition_type": "zone_coverage", "condition_value": 25},
]


@dataclass(frozen=True)
class ActivityCounters:
    reports_count: int = 0
    points_earned: int = 0
    consecutive_days: int = 0
    zone_coverage: int = 0

    def value_for(self, condition_type: str) -> int:
        return getattr(self, ConditionType(condition_type).value)

    def as_dict(self) -> dict:
        return asdict(self)


def level_for_points(points: int) -> int:
    return points // settings.POINTS_PER_LEVEL + 1


def lock_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).with_for_update().first()
    if not user:
        raise NotFound("User", user_id)
    return user


def credit_points(user: User, amount: int) -> User:
    """Add points and raise the level if a threshold was crossed. Points never go down here."""
    if amount < 0:
        raise ValueError("Point credits cannot be negative")
    if amount == 0:
        return user
    user.points = (user.points or 0) + amount
    new_level = level_for_points(user.points)
    if new_level > (user.level or 1):
        points_logger.info(f"user={user.id} reached level {new_level}")
        user.level = new_level
    points_logger.debug(f"user={user.id} +{amount} -> {user.points}")
    return user


def longest_streak(days) -> int:
    """Longest run of consecutive calendar days in `days`."""
    ordered = sorted(set(days))
    best = run = 0
    previous: Optional[date] = None
    for day in ordered:
        run = run + 1 if previous and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def compute_activity_counters(db: Session, user_id: int) -> ActivityCounters:
    """Counters from the user's report history. Pending changes must be flushed first."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User", user_id)

    rows = (
        db.query(WasteReport.zone_id, WasteReport.status, WasteReport.created_at)
        .filter(WasteReport.user_id == user_id)
        .all()
    )
    kept = [r for r in rows if r.status != ReportStatus.REJECTED.value]
    return ActivityCounters(
        reports_count=sum(1 for r in rows if r.status in VALIDATED_STATUSES),
        points_earned=user.points or 0,
        consecutive_days=longest_streak(r.created_at.date() for r in kept if r.created_at),
        zone_coverage=len({r.zone_id for r in kept}),
    )


def _qualifies(achievement: Achievement, counters: ActivityCounters) -> bool:
    try:
        return counters.value_for(achievement.condition_type) >= achievement.condition_value
    except ValueError:
        logger.warning(f"Unknown condition '{achievement.condition_type}' on {achievement.id}")
        return False


def grant_achievements(db: Session, user: User, counters: ActivityCounters, notifier=None) -> list:
    """
    Grant every newly qualifying achievement to `user`. Caller owns the transaction.
    Rewards count toward points_earned, so the pass repeats until a round grants nothing.
    """
    earned_ids = {
        row.achievement_id
        for row in db.query(UserAchievement.achievement_id).filter(UserAchievement.user_id == user.id)
    }
    catalog = (
        db.query(Achievement)
        .filter(Achievement.is_active.is_(True))
        .order_by(Achievement.condition_value, Achievement.id)
        .all()
    )

    now = datetime.utcnow()
    new = []
    while True:
        batch = [a for a in catalog if a.id not in earned_ids and _qualifies(a, counters)]
        if not batch:
            break
        for achievement in batch:
            db.add(UserAchievement(user_id=user.id, achievement_id=achievement.id,
                                   earned_at=now, points_earned=achievement.points_required))
            earned_ids.add(achievement.id)
        credit_points(user, sum(a.points_required for a in batch))
        counters = replace(counters, points_earned=max(counters.points_earned, user.points))
        new.extend(batch)

    if not new:
        return []
    db.flush()

    sink = resolve_sink(db, notifier)
    for achievement in new:
        sink.publish(DomainEvent(
            event_type=ACHIEVEMENT_EARNED,
            user_id=user.id,
            title=f"Achievement unlocked: {achievement.name}",
            message=achievement.description or achievement.name,
            data={"achievement_id": achievement.id, "points": achievement.points_required},
            notification_type=NotificationType.ACHIEVEMENT.value,
        ))
    logger.info(f"user={user.id} earned {[a.name for a in new]}")
    return new


def _evaluate_achievements(db: Session, user_id: int, counters: ActivityCounters = None, notifier=None):
    user = lock_user(db, user_id)
    counters = counters or compute_activity_counters(db, user_id)
    return grant_achievements(db, user, counters, notifier)


def evaluate_achievements(db: Session, user_id: int, counters: ActivityCounters = None,
                          notifier=None) -> list:
    """Public entry point. Counters default to the user's history."""
    return run_in_transaction(db, _evaluate_achievements, user_id, counters, notifier=notifier)


def list_achievements(db: Session, active_only: bool = True):
    q = db.query(Achievement)
    if active_only:
        q = q.filter(Achievement.is_active.is_(True))
    return q.order_by(Achievement.condition_type, Achievement.condition_value).all()


def user_achievements(db: Session, user_id: int):
    return (
        db.query(UserAchievement)
        .filter(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.earned_at)
        .all()
    )


def seed_achievements(db: Session) -> int:
    """Insert catalog entries that are missing (matched by name). Returns how many were added."""
    existing = {name for (name,) in db.query(Achievement.name)}
    added = 0
    for entry in ACHIEVEMENT_CATALOG:
        if entry["name"] in existing:
            continue
        db.add(Achievement(is_active=True, **entry))
        added += 1
    db.commit()
    logger.info(f"Catalog seeded: {added} new, {len(existing)} already present")
    return added
