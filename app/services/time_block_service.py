# app/services/time_block_service.py

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.base.exceptions import SlotNoLongerAvailable, TimeBlockNotFound
from app.base.models import TimeBlock, TimeBlockCreate
from app.services.booking_service import booking_window
from app.services.repository import SchedulingRepository
from app.utils.time_utils import local_now, ranges_overlap

logger = logging.getLogger("availability")


class TimeBlockService:
    """Manual blocking and unblocking of concrete dates/times for an interviewer."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository(db)

    def block_time(self, req: TimeBlockCreate, now: Optional[datetime] = None) -> TimeBlock:
        self.repo.get_interviewer(req.interviewer_id)
        try:
            self.repo.delete_expired_reservations(
                now or local_now(), interviewer_id=req.interviewer_id, on_date=req.blocked_date
            )
            block = self.repo.add_block(TimeBlock(**req.model_dump()))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise SlotNoLongerAvailable(
                f"{req.blocked_date} {req.start_time} is already blocked for {req.interviewer_id}"
            ) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"[Block] {req.interviewer_id} blocked {req.blocked_date} "
            f"{block.start_time}-{block.end_time} ({block.block_reason})"
        )
        return block

    def unblock(self, block_id: str) -> None:
        row = self.repo.get_block(block_id)
        if row is None:
            raise TimeBlockNotFound(f"Time block {block_id} not found")
        self.repo.delete_block(row)
        self.db.commit()
        logger.info(f"[Unblock] Time block {block_id} removed")

    def list_blocks(self, interviewer_id: str, date_from: Optional[date] = None,
                    date_to: Optional[date] = None) -> List[TimeBlock]:
        date_from = date_from or local_now().date()
        date_to = date_to or date_from + timedelta(days=30)
        return self.repo.list_blocks(interviewer_id, date_from, date_to)

    def is_time_available(self, interviewer_id: str, on_date: date, start_time: str,
                          duration_minutes: int = 60, now: Optional[datetime] = None) -> bool:
        """True when no active block or scheduled interview overlaps the interval."""
        now = now or local_now()
        self.repo.get_interviewer(interviewer_id)
        window = booking_window(start_time, duration_minutes)
        if any(
            block.is_active(now) and ranges_overlap(block.minutes, window)
            for block in self.repo.list_blocks(interviewer_id, on_date, on_date)
        ):
            return False
        return not any(
            ranges_overlap(interview.minutes, window)
            for interview in self.repo.list_scheduled_interviews(interviewer_id, on_date, on_date)
        )
