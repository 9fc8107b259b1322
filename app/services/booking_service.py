# app/services/booking_service.py

import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.base.config import settings
from app.base.exceptions import (
    InterviewNotFound,
    MalformedTimeError,
    MatchingError,
    ReservationNotFound,
    SlotNoLongerAvailable,
    TransportError,
)
from app.base.metrics import booking_attempts_total
from app.base.models import (
    BLOCK_REASON_INTERVIEW,
    BLOCK_REASON_RESERVATION,
    Interview,
    InterviewerProfile,
    TimeBlock,
    TimeRange,
)
from app.services.repository import SchedulingRepository
from app.utils.time_utils import (
    MINUTES_PER_DAY,
    local_now,
    merge_touching,
    ranges_overlap,
    subtract_interval,
    to_clock,
    to_minutes,
    weekday_name,
)

logger = logging.getLogger("booking")


def booking_window(start_time: str, duration_minutes: int) -> Tuple[int, int]:
    start = to_minutes(start_time)
    if duration_minutes <= 0:
        raise MalformedTimeError(f"Duration must be positive, got {duration_minutes}")
    end = start + duration_minutes
    if end > MINUTES_PER_DAY:
        raise MalformedTimeError(f"A {duration_minutes}-minute session from {start_time} crosses midnight")
    return start, end


class BookingService:
    """
    Commits bookings and reservations for an interviewer's concrete slot.

    Every write path re-checks the slot against time blocks and scheduled
    interviews inside the same transaction, then writes; nothing is written
    when the check fails. The unique (interviewer, date, start) constraint on
    time blocks rejects the loser of two simultaneous identical bookings.
    """

    def __init__(self, db: Session, carve_out: Optional[bool] = None):
        self.db = db
        self.repo = SchedulingRepository(db)
        self.carve_out = settings.CARVE_OUT_WEEKLY_TEMPLATE if carve_out is None else carve_out

    # === Transaction handling ===

    @contextmanager
    def _transaction(self, operation: str):
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            booking_attempts_total.labels(operation=operation, outcome="conflict").inc()
            logger.warning(f"[{operation}] Lost race on unique slot constraint")
            raise SlotNoLongerAvailable("The slot was taken by a concurrent booking") from e
        except SlotNoLongerAvailable:
            self.db.rollback()
            booking_attempts_total.labels(operation=operation, outcome="conflict").inc()
            raise
        except TransportError:
            self.db.rollback()
            booking_attempts_total.labels(operation=operation, outcome="error").inc()
            raise
        except MatchingError:
            self.db.rollback()
            booking_attempts_total.labels(operation=operation, outcome="rejected").inc()
            raise
        except SQLAlchemyError as e:
            # Partially applied writes are rolled back, never retried here
            self.db.rollback()
            booking_attempts_total.labels(operation=operation, outcome="error").inc()
            logger.error(f"[{operation}] Data store failure: {e}")
            raise TransportError(f"{operation} failed in the data store") from e

    # === Checks ===

    def _find_conflict(self, interviewer_id: str, day: date, window: Tuple[int, int], now: datetime,
                       ignore_block_id: Optional[str] = None) -> Optional[str]:
        for block in self.repo.list_blocks(interviewer_id, day, day):
            if block.id == ignore_block_id or not block.is_active(now):
                continue
            if ranges_overlap(block.minutes, window):
                return f"{block.block_reason} {block.start_time}-{block.end_time}"
        for interview in self.repo.list_scheduled_interviews(interviewer_id, day, day):
            if ranges_overlap(interview.minutes, window):
                return f"interview {interview.id} at {interview.scheduled_at:%H:%M}"
        return None

    @staticmethod
    def _within_template(profile: InterviewerProfile, day: date, window: Tuple[int, int]) -> bool:
        runs = merge_touching([r.minutes for r in profile.weekly_availability.for_date(day)])
        return any(start <= window[0] and window[1] <= end for start, end in runs)

    def _assert_bookable(self, profile: InterviewerProfile, day: date, window: Tuple[int, int],
                         now: datetime, ignore_block_id: Optional[str] = None) -> None:
        slot_start = datetime.combine(day, datetime.min.time()) + timedelta(minutes=window[0])
        if slot_start <= now:
            raise SlotNoLongerAvailable(f"Slot {day} {to_clock(window[0])} is in the past")
        if not self._within_template(profile, day, window):
            raise SlotNoLongerAvailable(
                f"{weekday_name(day)} {to_clock(window[0])} is outside the interviewer's availability"
            )
        conflict = self._find_conflict(profile.id, day, window, now, ignore_block_id)
        if conflict:
            raise SlotNoLongerAvailable(f"Slot {day} {to_clock(window[0])} overlaps {conflict}")

    # === Weekly template carve-out ===

    def _carve_out_template(self, profile: InterviewerProfile, day: date, window: Tuple[int, int]) -> None:
        weekday = weekday_name(day)
        carved: List[TimeRange] = []
        touched = False
        for weekly_range in profile.weekly_availability.for_weekday(weekday):
            if ranges_overlap(weekly_range.minutes, window):
                touched = True
                carved.extend(
                    TimeRange.from_minutes(start, end)
                    for start, end in subtract_interval(weekly_range.minutes, window)
                )
            else:
                carved.append(weekly_range)
        if touched:
            self.repo.replace_weekday_ranges(profile.id, weekday, carved)
            logger.info(f"[Carve] {profile.id} {weekday} narrowed to {[(r.start, r.end) for r in carved]}")

    # === Public API ===

    def confirm_booking(
        self,
        interviewer_id: str,
        slot_date: date,
        start_time: str,
        duration_minutes: int,
        candidate_id: str,
        reservation_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Interview:
        now = now or local_now()
        window = booking_window(start_time, duration_minutes)
        start_clock = to_clock(window[0])
        end_clock = to_clock(window[1], allow_midnight_end=True)

        with self._transaction("confirm"):
            # Purge first so a stale reservation never holds the unique start
            purged = self.repo.delete_expired_reservations(now, interviewer_id=interviewer_id, on_date=slot_date)
            if purged:
                logger.info(f"[Confirm] Purged {purged} expired reservation(s) for {interviewer_id} on {slot_date}")

            reservation = None
            if reservation_id:
                reservation = self.repo.get_block(reservation_id)
                if (
                    reservation is None
                    or not reservation.is_temporary
                    or reservation.interviewer_id != interviewer_id
                    or reservation.blocked_date != slot_date
                    or reservation.start_time != start_clock
                ):
                    raise ReservationNotFound(f"Reservation {reservation_id} does not hold this slot")

            profile = self.repo.get_interviewer(interviewer_id)
            self._assert_bookable(profile, slot_date, window, now, ignore_block_id=reservation_id)

            scheduled_at = datetime.combine(slot_date, datetime.min.time()) + timedelta(minutes=window[0])
            interview = self.repo.add_interview(interviewer_id, candidate_id, scheduled_at, duration_minutes)

            if reservation is not None:
                self.repo.promote_reservation(reservation, interview.id, end_clock)
            else:
                self.repo.add_block(TimeBlock(
                    interviewer_id=interviewer_id,
                    blocked_date=slot_date,
                    start_time=start_clock,
                    end_time=end_clock,
                    block_reason=BLOCK_REASON_INTERVIEW,
                    interview_id=interview.id,
                ))

            if self.carve_out:
                self._carve_out_template(profile, slot_date, window)

        booking_attempts_total.labels(operation="confirm", outcome="success").inc()
        logger.info(
            f"[Confirm] Interview {interview.id} booked with {interviewer_id} "
            f"on {slot_date} {start_clock}-{end_clock} for candidate {candidate_id}"
        )
        return interview

    def reserve_slot(
        self,
        interviewer_id: str,
        slot_date: date,
        start_time: str,
        duration_minutes: int,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> TimeBlock:
        """Holds a slot for RESERVATION_TTL_MINUTES while the candidate finishes checkout."""
        now = now or local_now()
        window = booking_window(start_time, duration_minutes)

        with self._transaction("reserve"):
            self.repo.delete_expired_reservations(now, interviewer_id=interviewer_id, on_date=slot_date)
            profile = self.repo.get_interviewer(interviewer_id)
            self._assert_bookable(profile, slot_date, window, now)
            block = self.repo.add_block(TimeBlock(
                interviewer_id=interviewer_id,
                blocked_date=slot_date,
                start_time=to_clock(window[0]),
                end_time=to_clock(window[1], allow_midnight_end=True),
                block_reason=BLOCK_REASON_RESERVATION,
                is_temporary=True,
                expires_at=now + timedelta(minutes=settings.RESERVATION_TTL_MINUTES),
                reserved_by=user_id,
            ))

        booking_attempts_total.labels(operation="reserve", outcome="success").inc()
        logger.info(f"[Reserve] {block.id} holds {interviewer_id} {slot_date} {block.start_time} until {block.expires_at}")
        return block

    def release_reservation(self, reservation_id: str) -> None:
        with self._transaction("release"):
            row = self.repo.get_block(reservation_id)
            if row is None or not row.is_temporary:
                raise ReservationNotFound(f"No temporary reservation {reservation_id}")
            self.repo.delete_block(row)
        logger.info(f"[Release] Reservation {reservation_id} released")

    def cleanup_expired_reservations(self, now: Optional[datetime] = None) -> int:
        with self._transaction("cleanup"):
            deleted = self.repo.delete_expired_reservations(now or local_now())
        logger.info(f"[Cleanup] Removed {deleted} expired reservation(s)")
        return deleted

    def cancel_interview(self, interview_id: str) -> Interview:
        """
        Marks the interview cancelled and frees its dated time block. A weekly
        template narrowed by the booking is not widened again.
        """
        with self._transaction("cancel"):
            row = self.repo.get_interview_row(interview_id)
            if row is None:
                raise InterviewNotFound(f"Interview {interview_id} not found")
            if row.status != "cancelled":
                row.status = "cancelled"
                freed = self.repo.delete_blocks_for_interview(interview_id)
                logger.info(f"[Cancel] Interview {interview_id} cancelled, {freed} block(s) freed")
            interview = Interview.model_validate(row)
        return interview
