# app/models/zone.py
"""
Waste collection zones (one physical collection point each).
current_fill_level is stored in liters; the percentage is always derived from capacity.
Mutated by fill_service (reports, sensors) and schedule_service (reset on collection).
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float, ForeignKey
from app.database import Base
from app.models.enums import PriorityLevel, ZoneType


class Zone(Base):
    __tablename__ = "waste_collection_zones"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    district_id = Column(Integer, ForeignKey("districts.id", ondelete="CASCADE"), index=True)
    latitude = Column(Float)
    longitude = Column(Float)
    radius_meters = Column(Integer, default=50, nullable=False)
    capacity_liters = Column(Integer, nullable=False)
    current_fill_level = Column(Float, default=0, nullable=False)   # liters
    priority_level = Column(String(10), default=PriorityLevel.LOW.value, nullable=False, index=True)
    zone_type = Column(String(20), default=ZoneType.RESIDENTIAL.value, nullable=False)
    last_emptied_at = Column(DateTime)
    next_collection_at = Column(DateTime)
    is_active = Column(Boolean, default=True, nullable=False)
    sensor_id = Column(String(100), unique=True)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def fill_percentage(self) -> float:
        from app.services.fill_service import fill_percentage
        return fill_percentage(self)

    def __repr__(self):
        return f"<Zone {self.id} {self.name} fill={self.current_fill_level}/{self.capacity_liters}L prio={self.priority_level}>"
