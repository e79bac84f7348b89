# app/services/priority_service.py
"""
Priority Classifier.
Rule, first match wins:
  fill >= CRITICAL_FILL_PERCENT                         -> high
  industrial and fill >= INDUSTRIAL_HIGH_FILL_PERCENT   -> high
  fill >= WARNING_FILL_PERCENT                          -> medium
  otherwise                                             -> low
"""

from sqlalchemy.orm import Session
from app.config import settings
from app.models.enums import PriorityLevel, ZoneType
from app.models.zone import Zone
from app.services.fill_service import fill_percentage
from app.utils.logger import get_logger

logger = get_logger(__name__, "PRIORITY")

PRIORITY_COLORS = {
    PriorityLevel.HIGH: "#ef4444",
    PriorityLevel.MEDIUM: "#f59e0b",
    PriorityLevel.LOW: "#10b981",
}
DEFAULT_COLOR = "#6b7280"


def classify_fill(percent: float, zone_type: str = ZoneType.RESIDENTIAL.value) -> PriorityLevel:
    if percent >= settings.CRITICAL_FILL_PERCENT:
        return PriorityLevel.HIGH
    if zone_type == ZoneType.INDUSTRIAL.value and percent >= settings.INDUSTRIAL_HIGH_FILL_PERCENT:
        return PriorityLevel.HIGH
    if percent >= settings.WARNING_FILL_PERCENT:
        return PriorityLevel.MEDIUM
    return PriorityLevel.LOW


def classify(zone) -> PriorityLevel:
    return classify_fill(fill_percentage(zone), zone.zone_type)


def needs_urgent_collection(zone) -> bool:
    # priority_level may be an admin override, so the fill check stays explicit
    return (zone.priority_level == PriorityLevel.HIGH.value
            or fill_percentage(zone) >= settings.CRITICAL_FILL_PERCENT)


def refresh_priority(zone) -> PriorityLevel:
    """Store the computed priority on the zone. Does not commit."""
    previous = zone.priority_level
    level = classify(zone)
    zone.priority_level = level.value
    if previous != level.value:
        logger.info(f"zone={zone.id} {previous} -> {level.value}")
    return level


def priority_color(level) -> str:
    try:
        return PRIORITY_COLORS[PriorityLevel(level)]
    except ValueError:
        return DEFAULT_COLOR


def urgent_zones(db: Session, limit: int = 50) -> list:
    """Active zones needing urgent collection, fullest first."""
    zones = db.query(Zone).filter(Zone.is_active.is_(True)).all()
    urgent = [z for z in zones if needs_urgent_collection(z)]
    urgent.sort(key=fill_percentage, reverse=True)
    return urgent[:limit]
