# app/routers/achievements.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.schemas.achievement import AchievementOut, UserAchievementOut, CountersIn
from app.services import achievement_service
from app.services.achievement_service import ActivityCounters

router = APIRouter()


@router.get("/achievements", response_model=list[AchievementOut], summary="Achievement catalog")
def list_achievements(active_only: bool = True, db: Session = Depends(get_db)):
    return achievement_service.list_achievements(db, active_only)


@router.get("/users/{user_id}/achievements", response_model=list[UserAchievementOut])
def get_user_achievements(user_id: int, db: Session = Depends(get_db)):
    return achievement_service.user_achievements(db, user_id)


@router.get("/users/{user_id}/counters", response_model=CountersIn, summary="Activity counters from history")
def get_user_counters(user_id: int, db: Session = Depends(get_db)):
    return achievement_service.compute_activity_counters(db, user_id).as_dict()


@router.post("/users/{user_id}/achievements/evaluate", response_model=list[AchievementOut])
def evaluate_user_achievements(user_id: int, body: Optional[CountersIn] = None, db: Session = Depends(get_db)):
    """Grant newly qualifying achievements. Without a body, counters come from the user's history."""
    counters = ActivityCounters(**body.model_dump()) if body else None
    return achievement_service.evaluate_achievements(db, user_id, counters)
