# app/models/report_action.py
"""
Append-only audit trail for waste reports.
One row per lifecycle transition (created/verified/rejected/resolved) plus free comments.
Rows are never updated after insert.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, JSON
from app.database import Base


class ReportAction(Base):
    __tablename__ = "report_actions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    report_id = Column(Integer, ForeignKey("waste_reports.id", ondelete="CASCADE"),
                       nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    action_type = Column(String(20), nullable=False, index=True)
    description = Column(Text)
    data = Column(JSON)
    performed_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<ReportAction {self.id} report={self.report_id} {self.action_type}>"
