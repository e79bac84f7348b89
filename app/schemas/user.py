# app/schemas/user.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class UserCreate(BaseModel):
    name: str
    email: str
    role: str = "citizen"    # admin | collector | citizen
    district_id: Optional[int] = None


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    points: int
    level: int
    district_id: Optional[int]
    is_active: bool
    last_activity_at: Optional[datetime]

    class Config:
        from_attributes = True


class NotificationOut(BaseModel):
    id: int
    user_id: int
    event_type: str
    title: str
    message: str
    type: str
    data: Optional[dict]
    priority: str
    action_url: Optional[str]
    read_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
