# app/routers/matching.py

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.base.database import get_db
from app.base.models import CandidateRequest, MatchResult, ScoredInterviewer, SlotListResponse
from app.services.matching_service import InterviewerMatcherService

router = APIRouter(tags=["Matching"])
logger = logging.getLogger("matching")


# === Endpoints ===

@router.post(
    "/find",
    response_model=MatchResult,
    summary="Find the best interviewer",
    description="Scores every eligible interviewer on skills, experience and time, and returns the selected one "
                "with the full ranking. 404 when nobody clears the skill cutoff or nobody has free time.",
)
def find_match(req: CandidateRequest, db: Session = Depends(get_db)):
    return InterviewerMatcherService(db).find_match(req)


@router.post(
    "/preview/{interviewer_id}",
    response_model=ScoredInterviewer,
    summary="Score one interviewer",
)
def preview_interviewer(interviewer_id: str, req: CandidateRequest, db: Session = Depends(get_db)):
    logger.info(f"[Preview] candidate={req.candidate_id} interviewer={interviewer_id}")
    return InterviewerMatcherService(db).preview_interviewer(interviewer_id, req)


@router.get(
    "/interviewers/{interviewer_id}/slots",
    response_model=SlotListResponse,
    summary="List free slots",
)
def list_slots(
    interviewer_id: str,
    duration_minutes: Optional[int] = Query(None, ge=15, le=240),
    preferred_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    return InterviewerMatcherService(db).list_available_slots(interviewer_id, duration_minutes, preferred_date)
