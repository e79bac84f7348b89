# app/models/achievement.py
"""
Achievement catalog + per-user grants.
A (user, achievement) pair is granted at most once (unique constraint).
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, UniqueConstraint
from app.database import Base


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), unique=True, nullable=False)
    description = Column(Text)
    icon = Column(String(50))
    badge_color = Column(String(20))
    points_required = Column(Integer, default=0, nullable=False)   # reward credited on grant
    condition_type = Column(String(30), nullable=False)
    condition_value = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Achievement {self.id} {self.condition_type}>={self.condition_value}>"


class UserAchievement(Base):
    __tablename__ = "user_achievements"
    __table_args__ = (UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    achievement_id = Column(Integer, ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False)
    earned_at = Column(DateTime, nullable=False)
    points_earned = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<UserAchievement user={self.user_id} achievement={self.achievement_id}>"
