from datetime import datetime, timedelta

import pytest

from app.base.config import ScoringPolicy
from app.base.exceptions import InterviewerNotFound, NoAvailableSlot, NoEligibleInterviewers
from app.base.models import CandidateRequest, ConcreteSlot, InterviewerProfile, ScoredInterviewer, TimeBlock
from app.services.matching_service import (
    InterviewerMatcherService,
    classify_skill,
    experience_points,
    rank_interviewers,
    skill_points,
)
from app.services.repository import SchedulingRepository

from conftest import MONDAY, NOW

POLICY = ScoringPolicy()
MONDAY_TEN = datetime.combine(MONDAY, datetime.min.time()) + timedelta(hours=10)


def frontend_request(**overrides) -> CandidateRequest:
    data = dict(
        candidate_id="cand-1",
        skill_categories=["Frontend Developer"],
        specific_skills=["React"],
        experience_years=2,
        preferred_time=MONDAY_TEN,
        duration_minutes=60,
    )
    data.update(overrides)
    return CandidateRequest(**data)


def scored(iid, quality, score, exact=False, alternative_hour=None, blocked=False) -> ScoredInterviewer:
    alternatives = []
    if alternative_hour is not None:
        alternatives.append(ConcreteSlot.build(MONDAY, alternative_hour * 60, alternative_hour * 60 + 60))
    return ScoredInterviewer(
        interviewer=InterviewerProfile(id=iid),
        match_score=score,
        skill_quality=quality,
        exact_time_match=exact,
        alternative_slots=alternatives,
        blocked=blocked,
    )


# === Ranking policy ===

def test_excellent_exact_match_beats_higher_scoring_good_one():
    ranked = rank_interviewers([scored("good", "good", 95, exact=True), scored("excellent", "excellent", 90, exact=True)])
    assert ranked[0].interviewer.id == "excellent"


def test_any_exact_match_beats_alternatives():
    ranked = rank_interviewers([
        scored("alt", "excellent", 88, alternative_hour=9),
        scored("exact-poor", "poor", 40, exact=True),
    ])
    assert [s.interviewer.id for s in ranked] == ["exact-poor", "alt"]


def test_alternatives_ordered_by_tier_then_score_then_earliest_slot():
    ranked = rank_interviewers([
        scored("late", "good", 50, alternative_hour=15),
        scored("early", "good", 50, alternative_hour=9),
        scored("higher", "good", 60, alternative_hour=16),
        scored("best-tier", "excellent", 45, alternative_hour=17),
    ])
    assert [s.interviewer.id for s in ranked] == ["best-tier", "higher", "early", "late"]


def test_blocked_interviewers_never_ranked():
    ranked = rank_interviewers([
        scored("blocked", "poor", 0, exact=True, blocked=True),
        scored("ok", "good", 40, alternative_hour=9),
    ])
    assert [s.interviewer.id for s in ranked] == ["ok"]


def test_empty_or_fully_blocked_pool_has_no_eligible_interviewers():
    with pytest.raises(NoEligibleInterviewers):
        rank_interviewers([])
    with pytest.raises(NoEligibleInterviewers):
        rank_interviewers([scored("a", "none", 0, blocked=True)])


def test_nobody_with_time_means_no_available_slot():
    with pytest.raises(NoAvailableSlot):
        rank_interviewers([scored("a", "excellent", 85)])


# === Scoring pieces ===

@pytest.mark.parametrize("interviewer,candidate,points", [
    (4, 2, 25),
    (2, 2, 25),
    (6, 2, 12.5),
    (7, 2, 12.5),
    (9, 2, 0),
    (1, 2, 0),
    (0, 0, 0),
    (None, 0, 0),
])
def test_experience_points(interviewer, candidate, points):
    assert experience_points(interviewer, candidate, POLICY) == points


@pytest.mark.parametrize("skill_score,tier", [(60, "excellent"), (40, "excellent"), (30, "good"), (10, "poor"), (2, "none")])
def test_classify_skill(skill_score, tier):
    assert classify_skill(skill_score, POLICY) == tier


def test_category_covered_through_related_technology():
    profile = InterviewerProfile(id="x", skill_categories=["Full Stack"], technologies=["react native"])
    points, details = skill_points(frontend_request(specific_skills=[]), profile, POLICY)
    assert points == POLICY.category_related_points
    assert "React" in details[0]


def test_extra_requested_skills_never_lower_the_score():
    profile = InterviewerProfile(id="x", skill_categories=["Frontend Developer"], technologies=["React"])
    short, _ = skill_points(frontend_request(), profile, POLICY)
    long, details = skill_points(
        frontend_request(specific_skills=["React", "Redux", "Jest", "Cypress", "Next.js", "Svelte"]), profile, POLICY
    )
    assert short == long == 40
    assert long >= POLICY.min_skill_threshold
    assert "Skill 'React' matches exactly" in details


def test_skill_points_are_capped_per_part():
    profile = InterviewerProfile(
        id="x",
        skill_categories=["Frontend Developer", "Full Stack Developer"],
        technologies=["React", "TypeScript", "Jest", "Cypress", "Vue.js"],
    )
    req = frontend_request(
        skill_categories=["Frontend Developer", "Full Stack Developer"],
        specific_skills=["React", "TypeScript", "Jest", "Cypress", "Vue.js"],
    )
    points, _ = skill_points(req, profile, POLICY)
    assert points == POLICY.category_exact_points + POLICY.skill_points_cap == 60


def test_skills_match_against_declared_categories_too():
    profile = InterviewerProfile(id="x", skill_categories=["DevOps Engineer", "Terraform"])
    req = frontend_request(skill_categories=["DevOps Engineer"], specific_skills=["Terraform"])
    points, _ = skill_points(req, profile, POLICY)
    assert points == POLICY.category_exact_points + POLICY.skill_exact_points


def test_candidate_experience_text_is_parsed():
    req = frontend_request(experience_years=None, experience="3-5 years")
    assert req.total_experience_years == 3
    assert frontend_request(experience_years=2, experience_months=6).total_experience_years == 2.5


# === Engine ===

def test_end_to_end_frontend_candidate_gets_exact_match(db, make_interviewer):
    a = make_interviewer(name="A", categories=["Frontend Developer"], technologies=["React", "TypeScript"], years=4)
    b = make_interviewer(name="B", categories=["DevOps Engineer"], technologies=["Docker", "Kubernetes"], years=4)

    result = InterviewerMatcherService(db).find_match(frontend_request(), now=NOW)

    winner = result.interviewer
    assert winner.interviewer.id == a.id
    assert winner.exact_time_match
    assert winner.skill_quality in ("excellent", "good")
    assert winner.match_score >= 75
    assert winner.exact_slot.display_text == "Monday, 11/08/2025 10:00-11:00"
    assert "Perfect time match" in winner.match_reasons
    assert b.id not in [s.interviewer.id for s in result.ranked]
    assert result.evaluated_count == 2


def test_interviewer_below_skill_cutoff_is_excluded_despite_time_and_experience(db, make_interviewer):
    make_interviewer(name="Weak", categories=["DevOps Engineer"], technologies=["Terraform", "Apollo GraphQL"], years=3)
    req = frontend_request(specific_skills=["GraphQL", "Storybook", "Webpack"])
    with pytest.raises(NoEligibleInterviewers):
        InterviewerMatcherService(db).find_match(req, now=NOW)

    weak = InterviewerMatcherService(db).preview_interviewer(
        SchedulingRepository(db).list_eligible_interviewers()[0].id, req, now=NOW
    )
    assert weak.blocked
    assert weak.match_score == 0
    assert weak.skill_score == POLICY.skill_partial_points
    assert weak.skill_quality == "poor"


def test_blocked_preferred_slot_falls_back_to_alternatives(db, make_interviewer):
    a = make_interviewer(name="A")
    SchedulingRepository(db).add_block(TimeBlock(
        interviewer_id=a.id, blocked_date=MONDAY, start_time="10:00", end_time="11:00",
    ))
    db.commit()

    winner = InterviewerMatcherService(db).find_match(frontend_request(), now=NOW).interviewer

    assert not winner.exact_time_match
    assert winner.time_score == POLICY.alternative_slot_bonus
    assert "Alternative time slots available" in winner.match_reasons
    starts = {(s.date, s.start_time) for s in winner.alternative_slots}
    assert (MONDAY, "10:00") not in starts
    assert (MONDAY, "09:00") in starts


def test_no_free_time_anywhere_raises_no_available_slot(db, make_interviewer):
    make_interviewer(name="Busy", friday=[])
    with pytest.raises(NoAvailableSlot):
        InterviewerMatcherService(db).find_match(frontend_request(), now=NOW)


def test_excluded_interviewer_is_skipped(db, make_interviewer):
    a = make_interviewer(name="A")
    with pytest.raises(NoEligibleInterviewers):
        InterviewerMatcherService(db).find_match(frontend_request(exclude_interviewer_id=a.id), now=NOW)


def test_ineligible_interviewers_are_not_considered(db, make_interviewer):
    hidden = make_interviewer(name="Hidden", eligible=False)
    with pytest.raises(NoEligibleInterviewers):
        InterviewerMatcherService(db).find_match(frontend_request(), now=NOW)
    with pytest.raises(InterviewerNotFound):
        InterviewerMatcherService(db).preview_interviewer(hidden.id, frontend_request(), now=NOW)


def test_list_available_slots_for_one_interviewer(db, make_interviewer):
    a = make_interviewer(name="A")
    response = InterviewerMatcherService(db).list_available_slots(a.id, 60, now=NOW)
    assert response.interviewer_id == a.id
    assert [s.start_time for s in response.slots][:3] == ["09:00", "10:00", "11:00"]
