# app/services/matching_service.py

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.base.config import ScoringPolicy, settings
from app.base.exceptions import InterviewerNotFound, NoAvailableSlot, NoEligibleInterviewers
from app.base.metrics import match_duration_seconds, match_requests_total
from app.base.models import (
    CandidateRequest,
    ConcreteSlot,
    Interview,
    InterviewerProfile,
    MatchResult,
    ScoredInterviewer,
    SlotListResponse,
    TimeBlock,
)
from app.services.availability_service import AvailabilityResolver
from app.services.repository import SchedulingRepository
from app.utils.skill_utils import exact_match, related_technologies, substring_match
from app.utils.time_utils import local_now

logger = logging.getLogger("matching")

TIER_RANK = {"excellent": 0, "good": 1, "poor": 2, "none": 3}


# === Skill scoring ===

def skill_points(request: CandidateRequest, profile: InterviewerProfile,
                 policy: ScoringPolicy) -> Tuple[float, List[str]]:
    """
    Skill points (0..skill_weight) the interviewer earns for a candidate
    request, with a detail line per match.

    Points only ever add up: requesting more skills never lowers the score
    of an interviewer who already covers some of them.

    - Category part: any exact category match earns the full category
      allowance; otherwise each requested category the interviewer covers by
      substring or through a catalogue technology earns related points, up
      to a cap.
    - Skill part: exact and partial matches against everything the
      interviewer declares (categories and technologies), up to a cap.
    """
    details: List[str] = []
    declared = list(profile.skill_categories) + list(profile.technologies)

    exact_categories = [c for c in request.skill_categories if exact_match(c, profile.skill_categories)]
    if exact_categories:
        category_score = policy.category_exact_points
        details.append(f"Exact skill category match: {', '.join(exact_categories)}")
    else:
        category_score = 0.0
        for category in request.skill_categories:
            related = substring_match(category, profile.skill_categories) or next(
                (tech for tech in related_technologies(category) if substring_match(tech, declared)),
                None,
            )
            if related:
                category_score += policy.category_related_points
                details.append(f"Category '{category}' covered through {related}")
        category_score = min(category_score, policy.category_related_cap)

    skill_score = 0.0
    for skill in request.specific_skills:
        if exact_match(skill, declared):
            skill_score += policy.skill_exact_points
            details.append(f"Skill '{skill}' matches exactly")
        elif substring_match(skill, declared):
            skill_score += policy.skill_partial_points
            details.append(f"Skill '{skill}' partially matches")
    skill_score = min(skill_score, policy.skill_points_cap)

    return min(category_score + skill_score, policy.skill_weight), details


def classify_skill(skill_score: float, policy: ScoringPolicy) -> str:
    for tier, floor in policy.tier_floors.items():
        if skill_score >= floor:
            return tier
    return "none"


def experience_points(interviewer_years: float, candidate_years: float, policy: ScoringPolicy) -> float:
    if not interviewer_years or interviewer_years <= 0:
        return 0.0
    gap = interviewer_years - candidate_years
    if gap < 0:
        return 0.0
    if gap <= policy.experience_full_gap_years:
        return policy.experience_weight
    if gap <= policy.experience_partial_gap_years:
        return policy.experience_weight * policy.experience_partial_ratio
    return 0.0


# === Ranking ===

def _earliest_key(scored: ScoredInterviewer) -> Tuple[date, int]:
    return scored.earliest_alternative or (date.max, 0)


def _rank_key(scored: ScoredInterviewer):
    return TIER_RANK[scored.skill_quality], -scored.match_score, _earliest_key(scored)


def rank_interviewers(scored: List[ScoredInterviewer]) -> List[ScoredInterviewer]:
    """
    Orders scored interviewers by the selection policy, winner first:
    exact-time matches with an excellent or good skill tier, then any other
    exact-time match, then interviewers offering alternative slots. Within
    each group: tier, score descending, earliest alternative slot.

    Blocked interviewers and interviewers with no time at all are left out.
    """
    if not scored:
        raise NoEligibleInterviewers("No eligible interviewers in the pool")

    eligible = [s for s in scored if not s.blocked]
    if not eligible:
        raise NoEligibleInterviewers("Every interviewer fell below the minimum skill threshold")

    exact = [s for s in eligible if s.exact_time_match]
    strong_exact = sorted((s for s in exact if s.skill_quality in ("excellent", "good")), key=_rank_key)
    weak_exact = sorted((s for s in exact if s.skill_quality not in ("excellent", "good")), key=_rank_key)
    alternatives = sorted(
        (s for s in eligible if not s.exact_time_match and s.alternative_slots), key=_rank_key
    )

    ranked = strong_exact + weak_exact + alternatives
    if not ranked:
        raise NoAvailableSlot(f"{len(eligible)} interviewer(s) matched but none has free time in the window")
    return ranked


class InterviewerMatcherService:
    """
    Scores every eligible interviewer against a candidate request (skills,
    experience, time) and picks one according to the ranking policy.
    """

    def __init__(self, db: Session, policy: Optional[ScoringPolicy] = None,
                 resolver: Optional[AvailabilityResolver] = None):
        self.repo = SchedulingRepository(db)
        self.policy = policy or settings.scoring_policy
        self.resolver = resolver or AvailabilityResolver(policy=self.policy)

    # === Scoring ===

    def score_interviewer(
        self,
        profile: InterviewerProfile,
        request: CandidateRequest,
        blocks: List[TimeBlock],
        interviews: List[Interview],
        now: datetime,
    ) -> ScoredInterviewer:
        policy = self.policy
        points, details = skill_points(request, profile, policy)
        skill_score = round(points, 2)
        quality = classify_skill(skill_score, policy)

        if skill_score < policy.min_skill_threshold:
            logger.debug(f"[Match] {profile.id} below skill cutoff ({skill_score} < {policy.min_skill_threshold})")
            return ScoredInterviewer(
                interviewer=profile,
                skill_score=skill_score,
                skill_quality=quality,
                blocked=True,
                match_details=details,
            )

        reasons = ["Skills match"]
        candidate_years = request.total_experience_years
        experience_score = experience_points(profile.experience_years, candidate_years, policy)
        if experience_score:
            reasons.append("Appropriate experience level")
            details.append(
                f"{profile.experience_years:g} years against {candidate_years:g} requested"
            )

        duration = request.duration_minutes
        preferred_date = request.preferred_time.date() if request.preferred_time else None
        exact_slot = self.resolver.find_exact_slot(
            profile, blocks, interviews, request.preferred_time, duration, now=now
        )
        alternatives = [
            slot for slot in self.resolver.resolve(
                profile, blocks, interviews, duration, preferred_date=preferred_date, now=now
            )
            if exact_slot is None or slot.sort_key != exact_slot.sort_key
        ]

        if exact_slot:
            time_score = policy.time_weight
            reasons.append("Perfect time match")
        elif alternatives:
            time_score = policy.alternative_slot_bonus
            reasons.append("Alternative time slots available")
        else:
            time_score = 0.0

        return ScoredInterviewer(
            interviewer=profile,
            match_score=round(skill_score + experience_score + time_score, 2),
            skill_score=skill_score,
            experience_score=experience_score,
            time_score=time_score,
            skill_quality=quality,
            exact_time_match=exact_slot is not None,
            exact_slot=exact_slot,
            alternative_slots=alternatives,
            match_reasons=reasons,
            match_details=details,
        )

    def _score_with_schedule(self, profile: InterviewerProfile, request: CandidateRequest,
                             now: datetime) -> ScoredInterviewer:
        date_from = now.date()
        date_to = date_from + timedelta(days=self.resolver.horizon_days)
        blocks = self.repo.list_blocks(profile.id, date_from, date_to)
        interviews = self.repo.list_scheduled_interviews(profile.id, date_from, date_to)
        return self.score_interviewer(profile, request, blocks, interviews, now)

    # === Public API ===

    def find_match(self, request: CandidateRequest, now: Optional[datetime] = None) -> MatchResult:
        now = now or local_now()
        with match_duration_seconds.time():
            pool = [
                p for p in self.repo.list_eligible_interviewers()
                if p.id != request.exclude_interviewer_id
            ]
            logger.info(
                f"[Match] candidate={request.candidate_id} categories={request.skill_categories} "
                f"pool={len(pool)}"
            )
            scored = [self._score_with_schedule(p, request, now) for p in pool]

            try:
                ranked = rank_interviewers(scored)
            except NoEligibleInterviewers:
                match_requests_total.labels(outcome="no_eligible").inc()
                logger.warning(f"[Match] No eligible interviewer for candidate={request.candidate_id}")
                raise
            except NoAvailableSlot:
                match_requests_total.labels(outcome="no_slot").inc()
                logger.warning(f"[Match] No free slot for candidate={request.candidate_id}")
                raise

        winner = ranked[0]
        match_requests_total.labels(outcome="exact" if winner.exact_time_match else "alternative").inc()
        logger.info(
            f"[Match] Selected {winner.interviewer.id} score={winner.match_score} "
            f"tier={winner.skill_quality} exact={winner.exact_time_match}"
        )
        return MatchResult(interviewer=winner, ranked=ranked, evaluated_count=len(scored))

    def preview_interviewer(self, interviewer_id: str, request: CandidateRequest,
                            now: Optional[datetime] = None) -> ScoredInterviewer:
        """Scores a single interviewer the candidate picked, outside the ranking policy."""
        profile = self.repo.get_interviewer(interviewer_id)
        if not profile.is_eligible:
            raise InterviewerNotFound(f"Interviewer {interviewer_id} is not accepting interviews")
        return self._score_with_schedule(profile, request, now or local_now())

    def list_available_slots(self, interviewer_id: str, duration: Optional[int] = None,
                             preferred_date: Optional[date] = None,
                             now: Optional[datetime] = None) -> SlotListResponse:
        now = now or local_now()
        duration = duration or settings.DEFAULT_SESSION_MINUTES
        profile = self.repo.get_interviewer(interviewer_id)
        date_from = now.date()
        date_to = date_from + timedelta(days=self.resolver.horizon_days)
        slots: List[ConcreteSlot] = self.resolver.resolve(
            profile,
            self.repo.list_blocks(interviewer_id, date_from, date_to),
            self.repo.list_scheduled_interviews(interviewer_id, date_from, date_to),
            duration,
            preferred_date=preferred_date,
            now=now,
        )
        return SlotListResponse(interviewer_id=interviewer_id, duration_minutes=duration, slots=slots)
