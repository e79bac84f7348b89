# app/services/fill_service.py
"""
Fill Estimator.
Turns a reported percentage (citizen report or sensor) into the zone's fill level in liters.

  unverified report -> max(current, reported)   concurrent reports commute
  verified / sensor -> reported exactly          authoritative overwrite

estimate_fill() never commits; callers persist it together with the report write.
"""

from datetime import datetime
from sqlalchemy.orm import Session
from app.exceptions import NotFound
from app.models.zone import Zone
from app.services.transaction import run_in_transaction
from app.utils.logger import get_logger

logger = get_logger(__name__, "FILL")


def fill_percentage(zone) -> float:
    """Fill level as a percentage of capacity, clamped to [0, 100]. 0 for zero capacity."""
    if not zone.capacity_liters or zone.capacity_liters <= 0:
        return 0.0
    pct = (zone.current_fill_level or 0) / zone.capacity_liters * 100
    return max(0.0, min(100.0, pct))


def percent_to_liters(zone, percent: float) -> float:
    if not zone.capacity_liters or zone.capacity_liters <= 0:
        return 0.0
    return round(zone.capacity_liters * percent / 100, 2)


def validate_level(reported_level: float) -> float:
    if reported_level is None or not 0 <= reported_level <= 100:
        raise ValueError(f"Fill level must be a percentage in [0, 100], got {reported_level}")
    return float(reported_level)


def estimate_fill(zone, reported_level: float, verified: bool = False) -> float:
    """Apply a reported percentage to the zone and return the new fill level in liters."""
    reported_liters = percent_to_liters(zone, validate_level(reported_level))
    current = zone.current_fill_level or 0

    new_level = reported_liters if verified else max(current, reported_liters)
    zone.current_fill_level = new_level
    zone.updated_at = datetime.utcnow()

    logger.debug(f"zone={zone.id} {current}L -> {new_level}L "
                 f"({'verified' if verified else 'unverified'} {reported_level}%)")
    return new_level


def reset_fill(zone, emptied_at: datetime = None):
    """Zone was physically emptied."""
    emptied_at = emptied_at or datetime.utcnow()
    zone.current_fill_level = 0
    zone.last_emptied_at = emptied_at
    zone.updated_at = emptied_at


def _apply_sensor_reading(db: Session, zone_id: int, level: float):
    from app.services.priority_service import refresh_priority
    from app.services.schedule_service import schedule_if_urgent

    zone = db.query(Zone).filter(Zone.id == zone_id).with_for_update().first()
    if not zone:
        raise NotFound("Zone", zone_id)

    estimate_fill(zone, level, verified=True)
    refresh_priority(zone)
    logger.info(f"Sensor {zone.sensor_id or '-'} zone={zone.id}: "
                f"{fill_percentage(zone):.1f}% prio={zone.priority_level}")
    schedule_if_urgent(db, zone)
    return zone


def apply_sensor_reading(db: Session, zone_id: int, level: float):
    """Sensor measurements are authoritative. Commits."""
    return run_in_transaction(db, _apply_sensor_reading, zone_id, level)


def find_zone_by_sensor(db: Session, sensor_id: str):
    return db.query(Zone).filter(Zone.sensor_id == sensor_id).first()
