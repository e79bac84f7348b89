# app/models/waste_report.py
"""
Citizen waste reports.
fill_level is the observed percentage (0..100). district_id is copied from the zone at creation.
Status only moves forward: pending -> verified -> resolved, or pending -> rejected.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Float, ForeignKey, JSON
from app.database import Base
from app.models.enums import ReportStatus, PriorityLevel


class WasteReport(Base):
    __tablename__ = "waste_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    zone_id = Column(Integer, ForeignKey("waste_collection_zones.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    district_id = Column(Integer, ForeignKey("districts.id"))
    fill_level = Column(Float, nullable=False)
    priority = Column(String(10), default=PriorityLevel.LOW.value, nullable=False)
    description = Column(Text)
    photos = Column(JSON, default=list)
    latitude = Column(Float)
    longitude = Column(Float)
    status = Column(String(20), default=ReportStatus.PENDING.value, nullable=False, index=True)
    verified_by = Column(Integer, ForeignKey("users.id"))
    verified_at = Column(DateTime)
    resolved_by = Column(Integer, ForeignKey("users.id"))
    resolved_at = Column(DateTime)
    rejection_reason = Column(Text)
    points_awarded = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<WasteReport {self.id} zone={self.zone_id} status={self.status}>"
