# app/routers/reports.py
"""Waste reports: citizen submission and the admin verify / reject / resolve workflow."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.schemas.report import (ReportCreate, ReportVerify, ReportReject, ReportResolve,
                                ReportComment, ReportOut, ReportActionOut)
from app.services import report_service

router = APIRouter()


@router.get("/reports", response_model=list[ReportOut])
def list_reports(status: Optional[str] = None, zone_id: Optional[int] = None,
                 user_id: Optional[int] = None, limit: int = 50, db: Session = Depends(get_db)):
    return report_service.list_reports(db, status, zone_id, user_id, limit)


@router.get("/reports/{report_id}", response_model=ReportOut)
def get_report(report_id: int, db: Session = Depends(get_db)):
    return report_service.get_report(db, report_id)


@router.get("/reports/{report_id}/actions", response_model=list[ReportActionOut], summary="Audit trail")
def get_report_actions(report_id: int, db: Session = Depends(get_db)):
    return report_service.report_history(db, report_id)


@router.post("/reports", response_model=ReportOut, status_code=201)
def submit_report(body: ReportCreate, db: Session = Depends(get_db)):
    return report_service.submit_report(db, body.reporter_id, body.zone_id, body.fill_level,
                                        body.description, body.photos, body.latitude, body.longitude)


@router.post("/reports/{report_id}/verify", response_model=ReportOut)
def verify_report(report_id: int, body: ReportVerify, db: Session = Depends(get_db)):
    return report_service.verify_report(db, report_id, body.admin_id, body.corrected_fill_level, body.comment)


@router.post("/reports/{report_id}/reject", response_model=ReportOut)
def reject_report(report_id: int, body: ReportReject, db: Session = Depends(get_db)):
    return report_service.reject_report(db, report_id, body.admin_id, body.reason)


@router.post("/reports/{report_id}/resolve", response_model=ReportOut)
def resolve_report(report_id: int, body: ReportResolve, db: Session = Depends(get_db)):
    return report_service.resolve_report(db, report_id, body.actor_id, body.collection_event)


@router.post("/reports/{report_id}/comments", response_model=ReportActionOut, status_code=201)
def comment_report(report_id: int, body: ReportComment, db: Session = Depends(get_db)):
    return report_service.add_comment(db, report_id, body.user_id, body.text)
