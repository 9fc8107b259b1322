# app/routers/booking.py

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.base.database import get_db
from app.base.models import BookingRequest, CleanupResponse, Interview, ReservationRequest, TimeBlock
from app.services.booking_service import BookingService

router = APIRouter(tags=["Booking"])
logger = logging.getLogger("booking")


@router.post(
    "/confirm",
    response_model=Interview,
    status_code=status.HTTP_201_CREATED,
    summary="Confirm a booking",
    description="Re-checks the slot and books it. 409 when the slot was taken since matching; "
                "the client should re-run matching.",
)
def confirm_booking(req: BookingRequest, db: Session = Depends(get_db)):
    return BookingService(db).confirm_booking(
        interviewer_id=req.interviewer_id,
        slot_date=req.slot.slot_date,
        start_time=req.slot.start_time,
        duration_minutes=req.duration_minutes,
        candidate_id=req.candidate_id,
        reservation_id=req.reservation_id,
    )


@router.post(
    "/reserve",
    response_model=TimeBlock,
    status_code=status.HTTP_201_CREATED,
    summary="Hold a slot temporarily",
)
def reserve_slot(req: ReservationRequest, db: Session = Depends(get_db)):
    return BookingService(db).reserve_slot(
        interviewer_id=req.interviewer_id,
        slot_date=req.slot.slot_date,
        start_time=req.slot.start_time,
        duration_minutes=req.duration_minutes,
        user_id=req.user_id,
    )


@router.delete("/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def release_reservation(reservation_id: str, db: Session = Depends(get_db)):
    BookingService(db).release_reservation(reservation_id)


@router.post("/reservations/cleanup", response_model=CleanupResponse, summary="Purge expired reservations")
def cleanup_reservations(db: Session = Depends(get_db)):
    return CleanupResponse(deleted=BookingService(db).cleanup_expired_reservations())


@router.post("/interviews/{interview_id}/cancel", response_model=Interview, summary="Cancel an interview")
def cancel_interview(interview_id: str, db: Session = Depends(get_db)):
    logger.info(f"[Cancel] Request for interview {interview_id}")
    return BookingService(db).cancel_interview(interview_id)
