# app/services/repository.py

import logging
from datetime import date, datetime
from functools import wraps
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.base.exceptions import InterviewerNotFound, TransportError
from app.base.models import (
    BLOCK_REASON_INTERVIEW,
    Interview,
    InterviewerCreate,
    InterviewerProfile,
    TimeBlock,
    TimeRange,
    WeeklyAvailability,
)
from app.models.db_models import InterviewerModel, InterviewModel, TimeBlockModel

logger = logging.getLogger("repository")


def _transport_guard(func):
    """Driver-level failures surface as TransportError; integrity errors pass through."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except IntegrityError:
            raise
        except (OperationalError, DBAPIError) as e:
            logger.error(f"[Repository] {func.__name__} failed: {e}")
            raise TransportError(f"Data store call {func.__name__} failed") from e
    return wrapper


def to_profile(row: InterviewerModel) -> InterviewerProfile:
    return InterviewerProfile(
        id=row.id,
        name=row.name,
        company=row.company,
        position=row.position,
        skill_categories=row.skill_categories or [],
        technologies=row.technologies or [],
        experience_years=row.experience_years or 0,
        is_eligible=bool(row.is_eligible),
        weekly_availability=WeeklyAvailability.from_storage(row.weekly_availability),
    )


class SchedulingRepository:
    """
    Read/write access to interviewer profiles, their weekly availability,
    time blocks and interviews. Writes are flushed, never committed; the
    calling service owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    # === Interviewer profiles ===

    @_transport_guard
    def list_eligible_interviewers(self) -> List[InterviewerProfile]:
        rows = self.db.query(InterviewerModel).filter(InterviewerModel.is_eligible.is_(True)).all()
        return [to_profile(r) for r in rows]

    def _interviewer_row(self, interviewer_id: str) -> InterviewerModel:
        row = self.db.query(InterviewerModel).filter_by(id=interviewer_id).first()
        if not row:
            raise InterviewerNotFound(f"Interviewer {interviewer_id} not found")
        return row

    @_transport_guard
    def get_interviewer(self, interviewer_id: str) -> InterviewerProfile:
        return to_profile(self._interviewer_row(interviewer_id))

    @_transport_guard
    def create_interviewer(self, req: InterviewerCreate) -> InterviewerProfile:
        row = InterviewerModel(
            name=req.name,
            company=req.company,
            position=req.position,
            skill_categories=req.skill_categories,
            technologies=req.technologies,
            experience_years=req.experience_years,
            is_eligible=req.is_eligible,
            weekly_availability=req.weekly_availability.to_storage(),
            schedule_last_updated=datetime.utcnow(),
        )
        self.db.add(row)
        self.db.flush()
        return to_profile(row)

    @_transport_guard
    def save_weekly_availability(self, interviewer_id: str, weekly: WeeklyAvailability) -> InterviewerProfile:
        row = self._interviewer_row(interviewer_id)
        row.weekly_availability = weekly.to_storage()
        row.schedule_last_updated = datetime.utcnow()
        self.db.flush()
        return to_profile(row)

    @_transport_guard
    def replace_weekday_ranges(self, interviewer_id: str, weekday: str, ranges: List[TimeRange]) -> WeeklyAvailability:
        row = self._interviewer_row(interviewer_id)
        weekly = WeeklyAvailability.from_storage(row.weekly_availability).replace_day(weekday, ranges)
        # JSON columns only notice reassignment, not in-place edits
        row.weekly_availability = weekly.to_storage()
        row.schedule_last_updated = datetime.utcnow()
        self.db.flush()
        return weekly

    # === Time blocks ===

    @_transport_guard
    def list_blocks(self, interviewer_id: str, date_from: date, date_to: date) -> List[TimeBlock]:
        rows = (
            self.db.query(TimeBlockModel)
            .filter(
                TimeBlockModel.interviewer_id == interviewer_id,
                TimeBlockModel.blocked_date >= date_from,
                TimeBlockModel.blocked_date <= date_to,
            )
            .order_by(TimeBlockModel.blocked_date.asc(), TimeBlockModel.start_time.asc())
            .all()
        )
        return [TimeBlock.model_validate(r) for r in rows]

    @_transport_guard
    def get_block(self, block_id: str) -> Optional[TimeBlockModel]:
        return self.db.query(TimeBlockModel).filter_by(id=block_id).first()

    @_transport_guard
    def add_block(self, block: TimeBlock) -> TimeBlock:
        row = TimeBlockModel(
            interviewer_id=block.interviewer_id,
            blocked_date=block.blocked_date,
            start_time=block.start_time,
            end_time=block.end_time,
            block_reason=block.block_reason,
            interview_id=block.interview_id,
            is_temporary=block.is_temporary,
            expires_at=block.expires_at,
            reserved_by=block.reserved_by,
        )
        self.db.add(row)
        self.db.flush()
        return TimeBlock.model_validate(row)

    @_transport_guard
    def delete_block(self, row: TimeBlockModel) -> None:
        self.db.delete(row)
        self.db.flush()

    @_transport_guard
    def promote_reservation(self, row: TimeBlockModel, interview_id: str, end_time: str) -> TimeBlock:
        """Turn a temporary reservation into the permanent block of a booked interview."""
        row.block_reason = BLOCK_REASON_INTERVIEW
        row.interview_id = interview_id
        row.end_time = end_time
        row.is_temporary = False
        row.expires_at = None
        row.updated_at = datetime.utcnow()
        self.db.flush()
        return TimeBlock.model_validate(row)

    @_transport_guard
    def delete_blocks_for_interview(self, interview_id: str) -> int:
        deleted = (
            self.db.query(TimeBlockModel)
            .filter(TimeBlockModel.interview_id == interview_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted

    @_transport_guard
    def delete_expired_reservations(self, now: datetime, interviewer_id: Optional[str] = None,
                                    on_date: Optional[date] = None) -> int:
        query = self.db.query(TimeBlockModel).filter(
            TimeBlockModel.is_temporary.is_(True),
            or_(TimeBlockModel.expires_at.is_(None), TimeBlockModel.expires_at <= now),
        )
        if interviewer_id:
            query = query.filter(TimeBlockModel.interviewer_id == interviewer_id)
        if on_date:
            query = query.filter(TimeBlockModel.blocked_date == on_date)
        deleted = query.delete(synchronize_session=False)
        self.db.flush()
        return deleted

    # === Interviews ===

    @_transport_guard
    def list_scheduled_interviews(self, interviewer_id: str, date_from: date, date_to: date) -> List[Interview]:
        lower = datetime.combine(date_from, datetime.min.time())
        upper = datetime.combine(date_to, datetime.max.time())
        rows = (
            self.db.query(InterviewModel)
            .filter(
                and_(
                    InterviewModel.interviewer_id == interviewer_id,
                    InterviewModel.status == "scheduled",
                    InterviewModel.scheduled_at >= lower,
                    InterviewModel.scheduled_at <= upper,
                )
            )
            .order_by(InterviewModel.scheduled_at.asc())
            .all()
        )
        return [Interview.model_validate(r) for r in rows]

    @_transport_guard
    def get_interview_row(self, interview_id: str) -> Optional[InterviewModel]:
        return self.db.query(InterviewModel).filter_by(id=interview_id).first()

    @_transport_guard
    def add_interview(self, interviewer_id: str, candidate_id: str, scheduled_at: datetime,
                      duration_minutes: int) -> Interview:
        row = InterviewModel(
            interviewer_id=interviewer_id,
            candidate_id=candidate_id,
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes,
            status="scheduled",
        )
        self.db.add(row)
        self.db.flush()
        return Interview.model_validate(row)
