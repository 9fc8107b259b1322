# app/routers/interviewers.py

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.base.database import get_db
from app.base.models import InterviewerCreate, InterviewerProfile, WeeklyAvailability
from app.services.repository import SchedulingRepository

router = APIRouter(tags=["Interviewers"])
logger = logging.getLogger("app")


@router.post(
    "",
    response_model=InterviewerProfile,
    status_code=status.HTTP_201_CREATED,
    summary="Register an interviewer",
)
def create_interviewer(req: InterviewerCreate, db: Session = Depends(get_db)):
    profile = SchedulingRepository(db).create_interviewer(req)
    db.commit()
    logger.info(f"[Interviewers] Created {profile.id} ({profile.name})")
    return profile


@router.get("/{interviewer_id}", response_model=InterviewerProfile, summary="Get interviewer profile")
def get_interviewer(interviewer_id: str, db: Session = Depends(get_db)):
    return SchedulingRepository(db).get_interviewer(interviewer_id)


@router.put(
    "/{interviewer_id}/availability",
    response_model=InterviewerProfile,
    summary="Replace weekly availability",
    description="Replaces the interviewer's recurring weekly ranges. Keys are weekday names.",
)
def update_availability(interviewer_id: str, weekly: WeeklyAvailability, db: Session = Depends(get_db)):
    profile = SchedulingRepository(db).save_weekly_availability(interviewer_id, weekly)
    db.commit()
    logger.info(f"[Interviewers] Weekly availability updated for {interviewer_id}")
    return profile
