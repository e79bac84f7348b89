# app/routers/zones.py
"""Zones: listing, admin management, sensor feed and urgency views."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.schemas.zone import ZoneCreate, ZoneUpdate, ZoneStatusUpdate, SensorReading, ZoneOut, ZoneStatsOut
from app.services import zone_service
from app.services.fill_service import apply_sensor_reading
from app.services.priority_service import needs_urgent_collection, urgent_zones

router = APIRouter()


def _with_urgency(zone):
    zone.needs_urgent_collection = needs_urgent_collection(zone)
    return zone


@router.get("/zones", response_model=list[ZoneOut])
def list_zones(district_id: Optional[int] = None, priority: Optional[str] = None,
               active_only: bool = False, db: Session = Depends(get_db)):
    return [_with_urgency(z) for z in zone_service.list_zones(db, district_id, priority, active_only)]


@router.get("/zones/urgent", response_model=list[ZoneOut], summary="Zones needing urgent collection")
def get_urgent_zones(limit: int = 50, db: Session = Depends(get_db)):
    return [_with_urgency(z) for z in urgent_zones(db, limit)]


@router.get("/zones/stats", response_model=ZoneStatsOut)
def get_zone_stats(db: Session = Depends(get_db)):
    return zone_service.zone_stats(db)


@router.get("/zones/{zone_id}", response_model=ZoneOut)
def get_zone(zone_id: int, db: Session = Depends(get_db)):
    return _with_urgency(zone_service.get_zone(db, zone_id))


@router.post("/zones", response_model=ZoneOut, status_code=201)
def create_zone(body: ZoneCreate, db: Session = Depends(get_db)):
    return _with_urgency(zone_service.create_zone(db, **body.model_dump()))


@router.put("/zones/{zone_id}", response_model=ZoneOut)
def update_zone(zone_id: int, body: ZoneUpdate, db: Session = Depends(get_db)):
    return _with_urgency(zone_service.update_zone(db, zone_id, **body.model_dump(exclude_unset=True)))


@router.put("/zones/{zone_id}/status", response_model=ZoneOut, summary="Activate or deactivate a zone")
def set_zone_status(zone_id: int, body: ZoneStatusUpdate, db: Session = Depends(get_db)):
    return _with_urgency(zone_service.set_zone_active(db, zone_id, body.is_active))


@router.post("/zones/{zone_id}/sensor", response_model=ZoneOut, summary="Sensor fill reading (authoritative)")
def post_sensor_reading(zone_id: int, body: SensorReading, db: Session = Depends(get_db)):
    return _with_urgency(apply_sensor_reading(db, zone_id, body.fill_level))
