# app/schemas/zone.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class ZoneCreate(BaseModel):
    name: str
    capacity_liters: int = Field(gt=0)
    district_id: Optional[int] = None
    zone_type: str = "residential"   # residential | commercial | industrial | public
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_meters: int = 50
    sensor_id: Optional[str] = None


class ZoneUpdate(BaseModel):
    name: Optional[str] = None
    capacity_liters: Optional[int] = Field(default=None, gt=0)
    district_id: Optional[int] = None
    zone_type: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_meters: Optional[int] = None
    sensor_id: Optional[str] = None
    priority_level: Optional[str] = None   # admin override: low | medium | high


class ZoneStatusUpdate(BaseModel):
    is_active: bool


class SensorReading(BaseModel):
    fill_level: float = Field(ge=0, le=100)   # percent


class ZoneOut(BaseModel):
    id: int
    name: str
    district_id: Optional[int]
    latitude: Optional[float]
    longitude: Optional[float]
    radius_meters: int
    capacity_liters: int
    current_fill_level: float
    fill_percentage: float
    priority_level: str
    zone_type: str
    needs_urgent_collection: Optional[bool] = None
    last_emptied_at: Optional[datetime]
    next_collection_at: Optional[datetime]
    is_active: bool
    sensor_id: Optional[str]

    class Config:
        from_attributes = True


class ZoneStatsOut(BaseModel):
    total_zones: int
    urgent_zones: int
    average_fill_percent: float
    by_priority: dict
