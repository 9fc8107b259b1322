# app/models/db_models.py

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)

from app.base.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class InterviewerModel(Base):
    __tablename__ = "interviewers"

    id = Column(String, primary_key=True, index=True, default=_uuid)
    name = Column(String, nullable=False)
    company = Column(String, nullable=True)
    position = Column(String, nullable=True)
    skill_categories = Column(JSON, default=list)
    technologies = Column(JSON, default=list)
    experience_years = Column(Float, default=0)
    is_eligible = Column(Boolean, default=True, index=True)
    weekly_availability = Column(JSON, default=dict)  # {"Monday": [{"id", "start", "end"}], ...}
    schedule_last_updated = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class InterviewModel(Base):
    __tablename__ = "interviews"

    id = Column(String, primary_key=True, index=True, default=_uuid)
    interviewer_id = Column(String, ForeignKey("interviewers.id"), nullable=False, index=True)
    candidate_id = Column(String, nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    status = Column(String, nullable=False, default="scheduled")  # scheduled, completed, cancelled
    created_at = Column(DateTime, default=datetime.utcnow)


class TimeBlockModel(Base):
    __tablename__ = "interviewer_time_blocks"
    __table_args__ = (
        # Two bookings can never claim the same start on the same day
        UniqueConstraint("interviewer_id", "blocked_date", "start_time", name="uq_block_interviewer_date_start"),
    )

    id = Column(String, primary_key=True, index=True, default=_uuid)
    interviewer_id = Column(String, ForeignKey("interviewers.id"), nullable=False, index=True)
    blocked_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)
    block_reason = Column(String, nullable=False, default="manual_block")
    interview_id = Column(String, ForeignKey("interviews.id"), nullable=True)
    is_temporary = Column(Boolean, default=False)
    expires_at = Column(DateTime, nullable=True)
    reserved_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)
