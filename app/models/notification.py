# app/models/notification.py
"""
User notifications: the persisted side of the notification sink.
Written by notification_service; delivery (email, push, ...) reads from here.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, JSON
from app.database import Base


class UserNotification(Base):
    __tablename__ = "user_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), default="info", nullable=False)
    data = Column(JSON)
    priority = Column(String(10), default="medium", nullable=False)
    action_url = Column(String(255))
    read_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<UserNotification {self.id} user={self.user_id} {self.event_type}>"
