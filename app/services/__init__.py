"""
Interviewer Matching Services Module

Centralized access to the scheduling services: availability resolution,
interviewer matching, booking and manual time blocks. Every service works on
a SQLAlchemy session through the SchedulingRepository.
"""

# === Data Access ===
from .repository import SchedulingRepository

# === Availability & Matching ===
from .availability_service import AvailabilityResolver
from .matching_service import InterviewerMatcherService, rank_interviewers

# === Booking & Time Blocks ===
from .booking_service import BookingService
from .time_block_service import TimeBlockService

# === Exported Interface ===
__all__ = [
    "SchedulingRepository",
    "AvailabilityResolver",
    "InterviewerMatcherService",
    "rank_interviewers",
    "BookingService",
    "TimeBlockService",
]
