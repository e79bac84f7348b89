# app/routers/schedules.py
"""Collection schedules: ensure / assign / start / complete / cancel, plus the servicing queue."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.schemas.schedule import ScheduleEnsure, ScheduleAssign, ScheduleComplete, ScheduleCancel, ScheduleOut
from app.services import schedule_service

router = APIRouter()


@router.get("/schedules", response_model=list[ScheduleOut])
def list_schedules(status: Optional[str] = None, zone_id: Optional[int] = None,
                   assigned_to: Optional[int] = None, limit: int = 100, db: Session = Depends(get_db)):
    return schedule_service.list_schedules(db, status, zone_id, assigned_to, limit)


@router.get("/schedules/queue", response_model=list[ScheduleOut], summary="Active schedules in servicing order")
def get_collection_queue(limit: int = 100, db: Session = Depends(get_db)):
    return schedule_service.collection_queue(db, limit)


@router.get("/schedules/{schedule_id}", response_model=ScheduleOut)
def get_schedule(schedule_id: int, db: Session = Depends(get_db)):
    return schedule_service.get_schedule(db, schedule_id)


@router.post("/schedules", response_model=ScheduleOut, summary="Return the zone's active schedule or create one")
def ensure_schedule(body: ScheduleEnsure, db: Session = Depends(get_db)):
    return schedule_service.ensure_scheduled(db, body.zone_id, body.scheduled_at, body.notes,
                                             body.estimated_duration_minutes)


@router.post("/schedules/{schedule_id}/assign", response_model=ScheduleOut)
def assign_schedule(schedule_id: int, body: ScheduleAssign, db: Session = Depends(get_db)):
    return schedule_service.assign_schedule(db, schedule_id, body.collector_id)


@router.post("/schedules/{schedule_id}/start", response_model=ScheduleOut)
def start_schedule(schedule_id: int, db: Session = Depends(get_db)):
    return schedule_service.start_schedule(db, schedule_id)


@router.post("/schedules/{schedule_id}/complete", response_model=ScheduleOut)
def complete_schedule(schedule_id: int, body: ScheduleComplete, db: Session = Depends(get_db)):
    return schedule_service.complete_schedule(db, schedule_id, body.actual_duration_minutes, body.completed_by)


@router.post("/schedules/{schedule_id}/cancel", response_model=ScheduleOut)
def cancel_schedule(schedule_id: int, body: ScheduleCancel, db: Session = Depends(get_db)):
    return schedule_service.cancel_schedule(db, schedule_id, body.reason)
