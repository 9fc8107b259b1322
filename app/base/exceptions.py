"""
Error taxonomy for the matching and booking engine.

Every domain error is recoverable at the call site by retrying with adjusted
input; `register_exception_handlers` turns them into JSON responses using
`status_code` and `user_message`.
"""

from typing import Optional


class MatchingError(Exception):
    status_code: int = 400
    user_message: str = "Request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.user_message
        super().__init__(self.detail)


class MalformedTimeError(MatchingError, ValueError):
    """Bad clock string or out-of-range time. Always a caller bug."""
    status_code = 422
    user_message = "Malformed time value"


class NoEligibleInterviewers(MatchingError):
    """Empty pool, or every interviewer fell below the skill cutoff."""
    status_code = 404
    user_message = "No match found, try different criteria"


class NoAvailableSlot(MatchingError):
    """Someone cleared the skill cutoff but nobody has a free interval."""
    status_code = 404
    user_message = "No free time in the booking window, try a later date"


class SlotNoLongerAvailable(MatchingError):
    """Conflict found at confirmation time; the caller should re-run matching."""
    status_code = 409
    user_message = "This slot is no longer available, please pick another slot"


class InterviewerNotFound(MatchingError):
    status_code = 404
    user_message = "Interviewer not found"


class ReservationNotFound(MatchingError):
    status_code = 404
    user_message = "Reservation not found or already released"


class InterviewNotFound(MatchingError):
    status_code = 404
    user_message = "Interview not found"


class TimeBlockNotFound(MatchingError):
    status_code = 404
    user_message = "Time block not found"


class TransportError(MatchingError):
    """Data-store I/O failure. Retry with backoff."""
    status_code = 503
    user_message = "Data store unavailable, please retry shortly"
