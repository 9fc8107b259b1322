# app/services/availability_service.py

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from app.base.config import ScoringPolicy, settings
from app.base.models import ConcreteSlot, Interview, InterviewerProfile, TimeBlock
from app.utils.time_utils import (
    clock_of,
    date_range,
    local_now,
    merge_touching,
    slice_range,
    subtract_all,
    to_minutes,
)

logger = logging.getLogger("availability")

Range = Tuple[int, int]


class AvailabilityResolver:
    """
    Materialises an interviewer's recurring weekly ranges into free concrete
    (date, start, end) slots over a date horizon, minus time blocks and
    already scheduled interviews. Read-only.
    """

    def __init__(self, horizon_days: Optional[int] = None, max_slots: Optional[int] = None,
                 policy: Optional[ScoringPolicy] = None):
        self.horizon_days = horizon_days or settings.AVAILABILITY_HORIZON_DAYS
        self.max_slots = max_slots or settings.MAX_SLOTS_PER_INTERVIEWER
        self.policy = policy or settings.scoring_policy

    # === Exclusions ===

    @staticmethod
    def exclusions_by_date(blocks: Iterable[TimeBlock], interviews: Iterable[Interview],
                           now: datetime) -> Dict[date, List[Range]]:
        by_date: Dict[date, List[Range]] = defaultdict(list)
        for block in blocks:
            if block.is_active(now):
                by_date[block.blocked_date].append(block.minutes)
        for interview in interviews:
            if interview.status == "scheduled":
                by_date[interview.scheduled_date].append(interview.minutes)
        return by_date

    def free_ranges_for_date(self, profile: InterviewerProfile, day: date,
                             exclusions: List[Range], now: datetime) -> List[Range]:
        """Weekday template ranges for `day` minus exclusions, without anything that already started."""
        free: List[Range] = []
        for window in profile.weekly_availability.for_date(day):
            free.extend(subtract_all(window.minutes, exclusions))

        if day < now.date():
            return []
        if day == now.date():
            cutoff = to_minutes(clock_of(now)) + (1 if now.second or now.microsecond else 0)
            free = [(max(start, cutoff), end) for start, end in free if end > cutoff]
            free = [(start, end) for start, end in free if start < end]
        return sorted(free)

    # === Duration handling ===

    @staticmethod
    def combine_for_duration(ranges: List[Range], duration: int) -> List[Range]:
        """
        Ranges at least `duration` long are cut into back-to-back sessions.
        Shorter ranges are merged greedily with the ranges that follow them
        end-to-start until the run covers `duration`, giving one session that
        starts where the run starts. Whatever the last merged range has left
        over is handled like any other range, so a short piece never swallows
        a long neighbour. A run that breaks before reaching `duration` is
        dropped.
        """
        ordered = sorted(ranges)
        result: List[Range] = []
        i = 0
        while i < len(ordered):
            start, end = ordered[i]
            if end - start >= duration:
                result.extend(slice_range(start, end, duration))
                i += 1
                continue

            run_end = end
            j = i + 1
            while run_end - start < duration and j < len(ordered) and ordered[j][0] == run_end:
                run_end = ordered[j][1]
                j += 1
            if run_end - start < duration:
                # The piece that broke adjacency may still start a run of its own
                i = i + 1 if j == i + 1 else j
                continue

            session_end = start + duration
            result.append((start, session_end))
            if run_end > session_end:
                j -= 1
                ordered[j] = (session_end, run_end)
            i = j
        return result

    # === Public API ===

    def resolve(
        self,
        profile: InterviewerProfile,
        blocks: Iterable[TimeBlock],
        interviews: Iterable[Interview],
        duration: int,
        preferred_date: Optional[date] = None,
        now: Optional[datetime] = None,
        horizon_days: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[ConcreteSlot]:
        now = now or local_now()
        exclusions = self.exclusions_by_date(blocks, interviews, now)

        slots: List[ConcreteSlot] = []
        for day in date_range(now.date(), horizon_days or self.horizon_days):
            free = self.free_ranges_for_date(profile, day, exclusions.get(day, []), now)
            for start, end in self.combine_for_duration(free, duration):
                slots.append(ConcreteSlot.build(day, start, end))

        slots.sort(key=lambda s: (s.date != preferred_date, s.date, s.minutes[0]))
        capped = slots[: (limit or self.max_slots)]
        logger.debug(
            f"[Availability] interviewer={profile.id} duration={duration} "
            f"found={len(slots)} returned={len(capped)}"
        )
        return capped

    def find_exact_slot(
        self,
        profile: InterviewerProfile,
        blocks: Iterable[TimeBlock],
        interviews: Iterable[Interview],
        preferred_time: Optional[datetime],
        duration: int,
        now: Optional[datetime] = None,
    ) -> Optional[ConcreteSlot]:
        """
        The concrete slot matching the candidate's preferred moment, if free.

        In "exact" mode the whole [preferred, preferred + duration) interval must
        sit inside one contiguous free run on that date. In "tolerance" mode any
        free session on that date starting within the tolerance window counts.
        """
        if preferred_time is None:
            return None
        now = now or local_now()
        day = preferred_time.date()
        if preferred_time < now or (day - now.date()).days > self.horizon_days:
            return None

        exclusions = self.exclusions_by_date(blocks, interviews, now)
        free = self.free_ranges_for_date(profile, day, exclusions.get(day, []), now)
        wanted_start = to_minutes(clock_of(preferred_time))
        wanted_end = wanted_start + duration

        if self.policy.time_match_mode == "tolerance":
            tolerance = self.policy.time_match_tolerance_minutes
            candidates = [
                (start, end) for start, end in self.combine_for_duration(free, duration)
                if abs(start - wanted_start) <= tolerance
            ]
            if not candidates:
                return None
            start, end = min(candidates, key=lambda r: (abs(r[0] - wanted_start), r[0]))
            return ConcreteSlot.build(day, start, start + duration)

        for start, end in merge_touching(free):
            if start <= wanted_start and wanted_end <= end:
                return ConcreteSlot.build(day, wanted_start, wanted_end)
        return None
