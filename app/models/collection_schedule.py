# app/models/collection_schedule.py
"""
Planned or completed collection visits.
At most one schedule per zone may be pending/in_progress; schedule_service enforces it
under a zone row lock, not a DB constraint.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from app.database import Base
from app.models.enums import ScheduleStatus


class CollectionSchedule(Base):
    __tablename__ = "collection_schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(Integer, ForeignKey("waste_collection_zones.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    completed_at = Column(DateTime)
    assigned_to = Column(Integer, ForeignKey("users.id"))
    status = Column(String(20), default=ScheduleStatus.PENDING.value, nullable=False, index=True)
    notes = Column(Text)
    estimated_duration_minutes = Column(Integer)
    actual_duration_minutes = Column(Integer)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<CollectionSchedule {self.id} zone={self.zone_id} status={self.status}>"
