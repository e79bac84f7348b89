# app/schemas/report.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class ReportCreate(BaseModel):
    reporter_id: int
    zone_id: int
    fill_level: float = Field(ge=0, le=100)   # observed percent
    description: Optional[str] = Field(default=None, max_length=1000)
    photos: list[str] = Field(default_factory=list, max_length=5)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class ReportVerify(BaseModel):
    admin_id: int
    corrected_fill_level: Optional[float] = Field(default=None, ge=0, le=100)
    comment: Optional[str] = None


class ReportReject(BaseModel):
    admin_id: int
    reason: str = Field(min_length=1, max_length=1000)


class ReportResolve(BaseModel):
    actor_id: int
    collection_event: bool = False


class ReportComment(BaseModel):
    user_id: int
    text: str = Field(min_length=1, max_length=1000)


class ReportOut(BaseModel):
    id: int
    user_id: int
    zone_id: int
    district_id: Optional[int]
    fill_level: float
    priority: str
    description: Optional[str]
    photos: Optional[list]
    latitude: Optional[float]
    longitude: Optional[float]
    status: str
    verified_by: Optional[int]
    verified_at: Optional[datetime]
    resolved_by: Optional[int]
    resolved_at: Optional[datetime]
    rejection_reason: Optional[str]
    points_awarded: int
    created_at: datetime

    class Config:
        from_attributes = True


class ReportActionOut(BaseModel):
    id: int
    report_id: int
    user_id: int
    action_type: str
    description: Optional[str]
    data: Optional[dict]
    performed_at: datetime

    class Config:
        from_attributes = True
