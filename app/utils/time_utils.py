# app/utils/time_utils.py

import re
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Tuple

import pytz

from app.base.config import settings
from app.base.exceptions import MalformedTimeError

MINUTES_PER_DAY = 24 * 60
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_LABEL_RE = re.compile(
    r"^\s*(?P<day>[A-Za-z]+),\s*(?P<dd>\d{1,2})/(?P<mm>\d{1,2})/(?P<yyyy>\d{4})\s+"
    r"(?P<start>\d{1,2}:\d{2})\s*-\s*(?P<end>\d{1,2}:\d{2})\s*$"
)


# === Clock <-> minutes ===

def to_minutes(clock: str, allow_midnight_end: bool = False) -> int:
    """
    Convert an "HH:MM" (or "HH:MM:SS" with zero seconds, as SQL TIME columns
    render) clock string to minutes since midnight.
    """
    if not isinstance(clock, str):
        raise MalformedTimeError(f"Clock value must be a string, got {type(clock).__name__}")
    match = _CLOCK_RE.match(clock.strip())
    if not match:
        raise MalformedTimeError(f"Malformed clock string: {clock!r}")

    hours, minutes, seconds = int(match.group(1)), int(match.group(2)), match.group(3)
    if seconds is not None and int(seconds) != 0:
        raise MalformedTimeError(f"Clock string must fall on a whole minute: {clock!r}")
    if minutes >= 60:
        raise MalformedTimeError(f"Minute out of range in {clock!r}")

    total = hours * 60 + minutes
    if allow_midnight_end and total == MINUTES_PER_DAY:
        return total
    if hours >= 24:
        raise MalformedTimeError(f"Hour out of range in {clock!r}")
    return total


def to_clock(minutes: int, allow_midnight_end: bool = False) -> str:
    upper = MINUTES_PER_DAY if allow_midnight_end else MINUTES_PER_DAY - 1
    if not isinstance(minutes, int) or isinstance(minutes, bool) or not 0 <= minutes <= upper:
        raise MalformedTimeError(f"Minute offset out of range: {minutes!r}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_clock(clock: str, allow_midnight_end: bool = False) -> str:
    """Canonical zero-padded "HH:MM" form of a clock string."""
    return to_clock(to_minutes(clock, allow_midnight_end), allow_midnight_end)


# === Half-open range arithmetic ===
# Ranges are (start_minute, end_minute) tuples, [start, end).

def ranges_overlap(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def subtract_interval(slot: Tuple[int, int], block: Tuple[int, int]) -> List[Tuple[int, int]]:
    """
    Residual sub-ranges of `slot` once `block` is removed from it.

    No overlap leaves the slot untouched, full containment leaves nothing,
    a one-sided overlap leaves one piece, a block strictly inside leaves the
    before and after pieces.
    """
    if not ranges_overlap(slot, block):
        return [slot]
    residuals = []
    if slot[0] < block[0]:
        residuals.append((slot[0], block[0]))
    if block[1] < slot[1]:
        residuals.append((block[1], slot[1]))
    return residuals


def subtract_all(slot: Tuple[int, int], blocks: Sequence[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Apply subtract_interval for every block in turn."""
    free = [slot]
    for block in blocks:
        next_free = []
        for piece in free:
            next_free.extend(subtract_interval(piece, block))
        free = next_free
        if not free:
            break
    return sorted(free)


def merge_touching(ranges: Sequence[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Coalesce ranges that touch or overlap into maximal contiguous runs."""
    merged: List[Tuple[int, int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def slice_range(start: int, end: int, duration: int) -> List[Tuple[int, int]]:
    """Cut [start, end) into back-to-back segments of `duration`; the remainder is dropped."""
    if duration <= 0:
        raise MalformedTimeError(f"Duration must be positive, got {duration}")
    return [(s, s + duration) for s in range(start, end - duration + 1, duration)]


# === Dates, labels, wall clock ===

def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def format_slot_label(day: date, start: str, end: str) -> str:
    return f"{weekday_name(day)}, {day.strftime('%d/%m/%Y')} {start}-{end}"


def parse_slot_label(label: str) -> Tuple[date, str, str]:
    """Inverse of format_slot_label: ("Monday, 16/08/2025 10:00-11:00") -> (date, start, end)."""
    match = _LABEL_RE.match(label or "")
    if not match:
        raise MalformedTimeError(f"Unrecognised slot label: {label!r}")
    try:
        day = date(int(match["yyyy"]), int(match["mm"]), int(match["dd"]))
    except ValueError as e:
        raise MalformedTimeError(f"Invalid date in slot label {label!r}: {e}")
    if match["day"].capitalize() != weekday_name(day):
        raise MalformedTimeError(f"Weekday does not match date in slot label {label!r}")
    return day, normalize_clock(match["start"]), normalize_clock(match["end"], allow_midnight_end=True)


def local_now() -> datetime:
    """Current wall-clock time in the scheduling timezone, naive."""
    tz = pytz.timezone(settings.SCHEDULING_TIMEZONE)
    return datetime.now(tz).replace(tzinfo=None)


def to_local(moment: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes are converted to the scheduling timezone; naive ones are taken as wall-clock."""
    if moment is None or moment.tzinfo is None:
        return moment
    tz = pytz.timezone(settings.SCHEDULING_TIMEZONE)
    return moment.astimezone(tz).replace(tzinfo=None)


def clock_of(moment: datetime) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"


def add_minutes(clock: str, minutes: int) -> str:
    """Shift a clock string forward; the result may be 24:00 but never past it."""
    return to_clock(to_minutes(clock) + minutes, allow_midnight_end=True)


def date_range(start: date, days: int) -> List[date]:
    """`start` and the `days` dates after it."""
    return [start + timedelta(days=i) for i in range(days + 1)]
