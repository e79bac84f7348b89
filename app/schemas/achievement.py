# app/schemas/achievement.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class AchievementOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    icon: Optional[str]
    badge_color: Optional[str]
    points_required: int
    condition_type: str
    condition_value: int
    is_active: bool

    class Config:
        from_attributes = True


class UserAchievementOut(BaseModel):
    id: int
    user_id: int
    achievement_id: int
    earned_at: datetime
    points_earned: int

    class Config:
        from_attributes = True


class CountersIn(BaseModel):
    """Activity counters supplied by the caller. Omit the body to use the user's history."""
    reports_count: int = Field(default=0, ge=0)
    points_earned: int = Field(default=0, ge=0)
    consecutive_days: int = Field(default=0, ge=0)
    zone_coverage: int = Field(default=0, ge=0)
