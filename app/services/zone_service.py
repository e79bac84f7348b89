# app/services/zone_service.py
"""
Zone administration: create/update/toggle zones and dashboard-level fill statistics.
Capacity or type changes re-run the priority classifier so the stored tier never goes stale.
"""

from datetime import datetime
from sqlalchemy.orm import Session
from app.exceptions import NotFound
from app.models.enums import PriorityLevel, ZoneType
from app.models.zone import Zone
from app.services.fill_service import fill_percentage
from app.services.priority_service import needs_urgent_collection, refresh_priority
from app.utils.logger import get_logger

logger = get_logger(__name__, "ZONE")

UPDATABLE_FIELDS = {"name", "district_id", "latitude", "longitude", "radius_meters",
                    "capacity_liters", "zone_type", "sensor_id", "priority_level"}


def get_zone(db: Session, zone_id: int) -> Zone:
    zone = db.query(Zone).filter(Zone.id == zone_id).first()
    if not zone:
        raise NotFound("Zone", zone_id)
    return zone


def list_zones(db: Session, district_id: int = None, priority: str = None, active_only: bool = False):
    q = db.query(Zone)
    if district_id:
        q = q.filter(Zone.district_id == district_id)
    if priority:
        q = q.filter(Zone.priority_level == priority)
    if active_only:
        q = q.filter(Zone.is_active.is_(True))
    return q.order_by(Zone.id).all()


def create_zone(db: Session, name: str, capacity_liters: int, district_id: int = None,
                zone_type: str = ZoneType.RESIDENTIAL.value, latitude: float = None,
                longitude: float = None, radius_meters: int = 50, sensor_id: str = None) -> Zone:
    if capacity_liters is None or capacity_liters <= 0:
        raise ValueError("capacity_liters must be positive")
    now = datetime.utcnow()
    zone = Zone(
        name=name,
        district_id=district_id,
        capacity_liters=capacity_liters,
        zone_type=ZoneType(zone_type).value,
        latitude=latitude,
        longitude=longitude,
        radius_meters=radius_meters,
        sensor_id=sensor_id,
        current_fill_level=0,
        priority_level=PriorityLevel.LOW.value,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.add(zone)
    db.commit()
    logger.info(f"Created {zone.id} '{zone.name}' ({zone.zone_type}, {zone.capacity_liters}L)")
    return zone


def update_zone(db: Session, zone_id: int, **changes) -> Zone:
    """Apply admin edits. An explicit priority_level is kept as an override; otherwise re-classified."""
    zone = get_zone(db, zone_id)
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown zone fields: {sorted(unknown)}")
    if "capacity_liters" in changes and (changes["capacity_liters"] or 0) <= 0:
        raise ValueError("capacity_liters must be positive")
    if "zone_type" in changes:
        changes["zone_type"] = ZoneType(changes["zone_type"]).value

    override = changes.pop("priority_level", None)
    for field_name, value in changes.items():
        setattr(zone, field_name, value)
    if override:
        zone.priority_level = PriorityLevel(override).value
    else:
        refresh_priority(zone)
    zone.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"Updated {zone.id}: {sorted(changes) + (['priority_level'] if override else [])}")
    return zone


def set_zone_active(db: Session, zone_id: int, is_active: bool) -> Zone:
    zone = get_zone(db, zone_id)
    zone.is_active = is_active
    zone.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"{zone.id} {'activated' if is_active else 'deactivated'}")
    return zone


def zone_stats(db: Session) -> dict:
    zones = db.query(Zone).filter(Zone.is_active.is_(True)).all()
    percents = [fill_percentage(z) for z in zones]
    return {
        "total_zones": len(zones),
        "urgent_zones": sum(1 for z in zones if needs_urgent_collection(z)),
        "average_fill_percent": round(sum(percents) / len(percents), 1) if percents else 0.0,
        "by_priority": {
            level.value: sum(1 for z in zones if z.priority_level == level.value)
            for level in PriorityLevel
        },
    }
