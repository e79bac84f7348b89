# app/schemas/schedule.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class ScheduleEnsure(BaseModel):
    zone_id: int
    scheduled_at: Optional[datetime] = None   # default: now + offset for zone priority
    notes: Optional[str] = None
    estimated_duration_minutes: Optional[int] = Field(default=None, gt=0)


class ScheduleAssign(BaseModel):
    collector_id: int


class ScheduleComplete(BaseModel):
    actual_duration_minutes: Optional[int] = Field(default=None, ge=0)
    completed_by: Optional[int] = None


class ScheduleCancel(BaseModel):
    reason: Optional[str] = None


class ScheduleOut(BaseModel):
    id: int
    zone_id: int
    scheduled_at: datetime
    completed_at: Optional[datetime]
    assigned_to: Optional[int]
    status: str
    notes: Optional[str]
    estimated_duration_minutes: Optional[int]
    actual_duration_minutes: Optional[int]

    class Config:
        from_attributes = True
