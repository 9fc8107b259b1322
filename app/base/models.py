import uuid
from datetime import date, datetime
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.base.config import settings
from app.utils.skill_utils import parse_experience
from app.utils.time_utils import (
    WEEKDAY_NAMES,
    add_minutes,
    clock_of,
    format_slot_label,
    normalize_clock,
    parse_slot_label,
    ranges_overlap,
    to_clock,
    to_local,
    to_minutes,
    weekday_name,
)

SkillQuality = Literal["excellent", "good", "poor", "none"]
InterviewStatus = Literal["scheduled", "completed", "cancelled"]

BLOCK_REASON_MANUAL = "manual_block"
BLOCK_REASON_INTERVIEW = "interview_scheduled"
BLOCK_REASON_RESERVATION = "temporary_reservation"


def new_range_id() -> str:
    return uuid.uuid4().hex[:12]


# === 🕒 Recurring Weekly Availability ===

class TimeRange(BaseModel):
    id: str = Field(default_factory=new_range_id)
    start: str = Field(..., description="HH:MM, inclusive")
    end: str = Field(..., description="HH:MM, exclusive; 24:00 allowed")

    @field_validator("start")
    @classmethod
    def _normalize_start(cls, value: str) -> str:
        return normalize_clock(value)

    @field_validator("end")
    @classmethod
    def _normalize_end(cls, value: str) -> str:
        return normalize_clock(value, allow_midnight_end=True)

    @model_validator(mode="after")
    def _check_order(self):
        if to_minutes(self.start) >= to_minutes(self.end, allow_midnight_end=True):
            raise ValueError(f"Range start {self.start} must be before end {self.end}")
        return self

    @property
    def minutes(self) -> Tuple[int, int]:
        return to_minutes(self.start), to_minutes(self.end, allow_midnight_end=True)

    @classmethod
    def from_minutes(cls, start: int, end: int, range_id: Optional[str] = None) -> "TimeRange":
        return cls(
            id=range_id or new_range_id(),
            start=to_clock(start),
            end=to_clock(end, allow_midnight_end=True),
        )


def _day_field(name: str):
    return Field(default_factory=list, alias=name)


class WeeklyAvailability(BaseModel):
    """
    Seven fixed weekday lists of non-overlapping half-open ranges.

    Field names are lower-case; the persisted and JSON forms are keyed by the
    capitalised weekday name ("Monday": [...]) and both spellings are accepted.
    """
    model_config = ConfigDict(populate_by_name=True)

    monday: List[TimeRange] = _day_field("Monday")
    tuesday: List[TimeRange] = _day_field("Tuesday")
    wednesday: List[TimeRange] = _day_field("Wednesday")
    thursday: List[TimeRange] = _day_field("Thursday")
    friday: List[TimeRange] = _day_field("Friday")
    saturday: List[TimeRange] = _day_field("Saturday")
    sunday: List[TimeRange] = _day_field("Sunday")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_legacy_entries(cls, value):
        # Plain "HH:MM" entries mean a one-hour window starting there
        if value is None:
            return []
        coerced = []
        for entry in value:
            if isinstance(entry, str):
                coerced.append({"start": entry, "end": add_minutes(entry, 60)})
            else:
                coerced.append(entry)
        return coerced

    @field_validator("*")
    @classmethod
    def _sort_and_check_overlap(cls, ranges: List[TimeRange]) -> List[TimeRange]:
        ordered = sorted(ranges, key=lambda r: r.minutes)
        for prev, nxt in zip(ordered, ordered[1:]):
            if ranges_overlap(prev.minutes, nxt.minutes):
                raise ValueError(f"Overlapping ranges {prev.start}-{prev.end} and {nxt.start}-{nxt.end}")
        return ordered

    @staticmethod
    def _field_for(weekday: str) -> str:
        name = weekday.strip().capitalize()
        if name not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday: {weekday!r}")
        return name.lower()

    def for_weekday(self, weekday: str) -> List[TimeRange]:
        return list(getattr(self, self._field_for(weekday)))

    def for_date(self, day: date) -> List[TimeRange]:
        return self.for_weekday(weekday_name(day))

    def replace_day(self, weekday: str, ranges: List[TimeRange]) -> "WeeklyAvailability":
        """Copy of this map with one weekday's list replaced."""
        data = self.model_dump()
        data[self._field_for(weekday)] = [r.model_dump() for r in ranges]
        return WeeklyAvailability.model_validate(data)

    def to_storage(self) -> Dict[str, List[Dict[str, str]]]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_storage(cls, data: Optional[Dict]) -> "WeeklyAvailability":
        return cls.model_validate(data or {})


# === 👤 Interviewers ===

class InterviewerProfile(BaseModel):
    id: str
    name: Optional[str] = None
    company: Optional[str] = None
    position: Optional[str] = None
    skill_categories: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    experience_years: float = 0
    is_eligible: bool = True
    weekly_availability: WeeklyAvailability = Field(default_factory=WeeklyAvailability)


class InterviewerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    company: Optional[str] = None
    position: Optional[str] = None
    skill_categories: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    experience_years: float = Field(0, ge=0, le=60)
    is_eligible: bool = True
    weekly_availability: WeeklyAvailability = Field(default_factory=WeeklyAvailability)


# === 🚫 Exclusions ===

class TimeBlock(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    interviewer_id: str
    blocked_date: date
    start_time: str
    end_time: str
    block_reason: str = BLOCK_REASON_MANUAL
    interview_id: Optional[str] = None
    is_temporary: bool = False
    expires_at: Optional[datetime] = None
    reserved_by: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def _normalize_start(cls, value: str) -> str:
        return normalize_clock(value)

    @field_validator("end_time")
    @classmethod
    def _normalize_end(cls, value: str) -> str:
        return normalize_clock(value, allow_midnight_end=True)

    @property
    def minutes(self) -> Tuple[int, int]:
        return to_minutes(self.start_time), to_minutes(self.end_time, allow_midnight_end=True)

    def is_active(self, now: datetime) -> bool:
        """Permanent blocks are always active; temporary ones until they expire."""
        if not self.is_temporary:
            return True
        return self.expires_at is not None and self.expires_at > now


class TimeBlockCreate(BaseModel):
    interviewer_id: str
    blocked_date: date
    start_time: str
    end_time: str
    block_reason: str = BLOCK_REASON_MANUAL

    @model_validator(mode="after")
    def _check_range(self):
        start = to_minutes(self.start_time)
        end = to_minutes(self.end_time, allow_midnight_end=True)
        if start >= end:
            raise ValueError(f"Block start {self.start_time} must be before end {self.end_time}")
        self.start_time, self.end_time = to_clock(start), to_clock(end, allow_midnight_end=True)
        return self


class TimeAvailability(BaseModel):
    interviewer_id: str
    date: date
    start_time: str
    duration_minutes: int
    available: bool


class Interview(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    interviewer_id: str
    candidate_id: str
    scheduled_at: datetime
    duration_minutes: int
    status: InterviewStatus = "scheduled"
    created_at: Optional[datetime] = None

    @property
    def scheduled_date(self) -> date:
        return self.scheduled_at.date()

    @property
    def minutes(self) -> Tuple[int, int]:
        start = to_minutes(clock_of(self.scheduled_at))
        return start, start + self.duration_minutes


# === 🎯 Matching ===

class CandidateRequest(BaseModel):
    candidate_id: Optional[str] = None
    skill_categories: List[str] = Field(..., min_length=1, description="Ordered skill categories")
    specific_skills: List[str] = Field(default_factory=list)
    experience_years: Optional[float] = Field(None, ge=0, le=60)
    experience_months: int = Field(0, ge=0, le=11)
    experience: Optional[str] = Field(None, description="Free-text experience, e.g. '3-5 years'")
    preferred_time: Optional[datetime] = None
    exclude_interviewer_id: Optional[str] = None
    duration_minutes: int = Field(default_factory=lambda: settings.DEFAULT_SESSION_MINUTES, ge=15, le=240)

    @field_validator("skill_categories", "specific_skills")
    @classmethod
    def _dedupe(cls, values: List[str]) -> List[str]:
        # ordered set semantics
        seen, ordered = set(), []
        for value in values:
            key = value.strip().lower()
            if key and key not in seen:
                seen.add(key)
                ordered.append(value.strip())
        return ordered

    @field_validator("preferred_time")
    @classmethod
    def _localize(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local(value)

    @property
    def total_experience_years(self) -> float:
        if self.experience_years is not None:
            return self.experience_years + self.experience_months / 12
        return float(parse_experience(self.experience))


class ConcreteSlot(BaseModel):
    date: date
    day_name: str
    start_time: str
    end_time: str
    display_text: str

    @classmethod
    def build(cls, day: date, start: int, end: int) -> "ConcreteSlot":
        start_clock, end_clock = to_clock(start), to_clock(end, allow_midnight_end=True)
        return cls(
            date=day,
            day_name=weekday_name(day),
            start_time=start_clock,
            end_time=end_clock,
            display_text=format_slot_label(day, start_clock, end_clock),
        )

    @property
    def minutes(self) -> Tuple[int, int]:
        return to_minutes(self.start_time), to_minutes(self.end_time, allow_midnight_end=True)

    @property
    def sort_key(self) -> Tuple[date, int]:
        return self.date, self.minutes[0]


class ScoredInterviewer(BaseModel):
    interviewer: InterviewerProfile
    match_score: float = 0
    skill_score: float = 0
    experience_score: float = 0
    time_score: float = 0
    skill_quality: SkillQuality = "none"
    exact_time_match: bool = False
    exact_slot: Optional[ConcreteSlot] = None
    alternative_slots: List[ConcreteSlot] = Field(default_factory=list)
    blocked: bool = False
    match_reasons: List[str] = Field(default_factory=list)
    match_details: List[str] = Field(default_factory=list)

    @property
    def earliest_alternative(self) -> Optional[Tuple[date, int]]:
        if not self.alternative_slots:
            return None
        return min(slot.sort_key for slot in self.alternative_slots)


class MatchResult(BaseModel):
    interviewer: ScoredInterviewer
    ranked: List[ScoredInterviewer]
    evaluated_count: int


class SlotListResponse(BaseModel):
    interviewer_id: str
    duration_minutes: int
    slots: List[ConcreteSlot]


# === 📅 Booking ===

class SlotSelection(BaseModel):
    """A chosen slot, given either as date + start time or as its display label."""
    slot_date: Optional[date] = None
    start_time: Optional[str] = None
    label: Optional[str] = None

    @model_validator(mode="after")
    def _resolve(self):
        if self.label and (self.slot_date is None or self.start_time is None):
            self.slot_date, self.start_time, _ = parse_slot_label(self.label)
        if self.slot_date is None or self.start_time is None:
            raise ValueError("Provide either date and start_time, or a slot label")
        self.start_time = normalize_clock(self.start_time)
        return self


class BookingRequest(BaseModel):
    interviewer_id: str
    candidate_id: str
    slot: SlotSelection
    duration_minutes: int = Field(default_factory=lambda: settings.DEFAULT_SESSION_MINUTES, ge=15, le=240)
    reservation_id: Optional[str] = None


class ReservationRequest(BaseModel):
    interviewer_id: str
    user_id: str
    slot: SlotSelection
    duration_minutes: int = Field(default_factory=lambda: settings.DEFAULT_SESSION_MINUTES, ge=15, le=240)


class CleanupResponse(BaseModel):
    deleted: int
