# app/routers/time_blocks.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.base.database import get_db
from app.base.models import TimeAvailability, TimeBlock, TimeBlockCreate
from app.services.time_block_service import TimeBlockService

router = APIRouter(tags=["Time Blocks"])


@router.post("", response_model=TimeBlock, status_code=status.HTTP_201_CREATED, summary="Block a time range")
def block_time(req: TimeBlockCreate, db: Session = Depends(get_db)):
    return TimeBlockService(db).block_time(req)


@router.delete("/{block_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a time block")
def unblock(block_id: str, db: Session = Depends(get_db)):
    TimeBlockService(db).unblock(block_id)


@router.get("/{interviewer_id}", response_model=List[TimeBlock], summary="List time blocks")
def list_blocks(
    interviewer_id: str,
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    return TimeBlockService(db).list_blocks(interviewer_id, date_from, date_to)


@router.get("/{interviewer_id}/available", response_model=TimeAvailability, summary="Check if a time is free")
def check_availability(
    interviewer_id: str,
    on_date: date = Query(...),
    start_time: str = Query(..., description="HH:MM"),
    duration_minutes: int = Query(60, ge=15, le=240),
    db: Session = Depends(get_db),
):
    available = TimeBlockService(db).is_time_available(interviewer_id, on_date, start_time, duration_minutes)
    return TimeAvailability(
        interviewer_id=interviewer_id,
        date=on_date,
        start_time=start_time,
        duration_minutes=duration_minutes,
        available=available,
    )
