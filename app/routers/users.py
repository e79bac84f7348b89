# app/routers/users.py
"""Users (engine-relevant fields only) and their notification inbox."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from datetime import datetime
from app.database import get_db
from app.exceptions import NotFound
from app.models.enums import UserRole
from app.models.notification import UserNotification
from app.models.user import User
from app.schemas.user import UserCreate, UserOut, NotificationOut
from app.services.notification_service import list_notifications, mark_read

router = APIRouter()


@router.post("/users", response_model=UserOut, status_code=201)
def create_user(body: UserCreate, db: Session = Depends(get_db)):
    if body.role not in {r.value for r in UserRole}:
        raise HTTPException(status_code=422, detail=f"Unknown role '{body.role}'")
    existing = db.query(User).filter(User.email == body.email).first()
    if existing:
        raise HTTPException(status_code=400, detail=f"Email {body.email} already registered")
    user = User(name=body.name, email=body.email, role=body.role, district_id=body.district_id,
                points=0, level=1, is_active=True, created_at=datetime.utcnow())
    db.add(user)
    db.commit()
    return user


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User", user_id)
    return user


@router.get("/users/{user_id}/notifications", response_model=list[NotificationOut])
def get_notifications(user_id: int, unread_only: bool = False, limit: int = 50, db: Session = Depends(get_db)):
    return list_notifications(db, user_id, unread_only, limit)


@router.put("/notifications/{notification_id}/read", response_model=NotificationOut)
def read_notification(notification_id: int, db: Session = Depends(get_db)):
    notification = db.query(UserNotification).filter(UserNotification.id == notification_id).first()
    if not notification:
        raise NotFound("UserNotification", notification_id)
    return mark_read(db, notification)
