from datetime import datetime

from fastapi.testclient import TestClient

from app import main
from app.utils.time_utils import format_slot_label

from conftest import next_weekday

INTERVIEWER = {
    "name": "Asha",
    "company": "Acme",
    "skill_categories": ["Frontend Developer"],
    "technologies": ["React", "TypeScript"],
    "experience_years": 4,
    "weekly_availability": {"Monday": [{"start": "09:00", "end": "12:00"}]},
}


def create_interviewer(client, **overrides):
    payload = {**INTERVIEWER, **overrides}
    response = client.post("/interviewers", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def match_payload(monday, **overrides):
    payload = {
        "candidate_id": "cand-1",
        "skill_categories": ["Frontend Developer"],
        "specific_skills": ["React"],
        "experience_years": 2,
        "preferred_time": datetime(monday.year, monday.month, monday.day, 10, 0).isoformat(),
        "duration_minutes": 60,
    }
    payload.update(overrides)
    return payload


# === System ===

def test_health_and_version(client):
    assert client.get("/health").json() == {"status": "ok"}
    body = client.get("/version").json()
    assert body["version"] == "1.0.0"
    assert body["time_match_mode"] in ("exact", "tolerance")


def test_startup_creates_tables(monkeypatch):
    calls = []
    monkeypatch.setattr(main, "init_db", lambda: calls.append("init_db"))
    with TestClient(main.app) as started:
        assert started.get("/health").status_code == 200
    assert calls == ["init_db"]


def test_metrics_exposed(client):
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "match_requests_total" in response.text


# === Interviewers ===

def test_create_and_fetch_interviewer(client):
    created = create_interviewer(client)
    fetched = client.get(f"/interviewers/{created['id']}").json()
    assert fetched["name"] == "Asha"
    assert fetched["weekly_availability"]["Monday"][0]["start"] == "09:00"
    assert fetched["weekly_availability"]["Tuesday"] == []


def test_unknown_interviewer_is_404(client):
    response = client.get("/interviewers/nope")
    assert response.status_code == 404
    assert response.json()["error"] == "InterviewerNotFound"


def test_overlapping_availability_is_rejected(client):
    created = create_interviewer(client)
    response = client.put(
        f"/interviewers/{created['id']}/availability",
        json={"Monday": [{"start": "09:00", "end": "11:00"}, {"start": "10:00", "end": "12:00"}]},
    )
    assert response.status_code == 422


def test_legacy_clock_entries_become_hour_ranges(client):
    created = create_interviewer(client)
    response = client.put(f"/interviewers/{created['id']}/availability", json={"Friday": ["14:00", "16:00"]})
    assert response.status_code == 200
    assert [(r["start"], r["end"]) for r in response.json()["weekly_availability"]["Friday"]] == [
        ("14:00", "15:00"), ("16:00", "17:00"),
    ]


# === Matching and booking ===

def test_match_then_book_then_slot_is_gone(client):
    monday = next_weekday(0)
    asha = create_interviewer(client)
    create_interviewer(client, name="Bo", skill_categories=["DevOps Engineer"], technologies=["Terraform"])

    match = client.post("/match/find", json=match_payload(monday))
    assert match.status_code == 200, match.text
    winner = match.json()["interviewer"]
    assert winner["interviewer"]["id"] == asha["id"]
    assert winner["exact_time_match"] is True
    assert winner["match_score"] >= 75

    label = format_slot_label(monday, "10:00", "11:00")
    booking = {"interviewer_id": asha["id"], "candidate_id": "cand-1", "slot": {"label": label}}
    confirmed = client.post("/booking/confirm", json=booking)
    assert confirmed.status_code == 201, confirmed.text
    assert confirmed.json()["status"] == "scheduled"

    retry = client.post("/booking/confirm", json={**booking, "candidate_id": "cand-2"})
    assert retry.status_code == 409
    assert retry.json()["error"] == "SlotNoLongerAvailable"

    slots = client.get(f"/match/interviewers/{asha['id']}/slots", params={"preferred_date": monday.isoformat()})
    assert label not in [s["display_text"] for s in slots.json()["slots"]]


def test_match_with_empty_pool_is_404(client):
    response = client.post("/match/find", json=match_payload(next_weekday(0)))
    assert response.status_code == 404
    assert response.json()["error"] == "NoEligibleInterviewers"


def test_match_requires_a_skill_category(client):
    response = client.post("/match/find", json=match_payload(next_weekday(0), skill_categories=[]))
    assert response.status_code == 422


def test_preview_scores_a_single_interviewer(client):
    asha = create_interviewer(client)
    response = client.post(f"/match/preview/{asha['id']}", json=match_payload(next_weekday(0)))
    assert response.status_code == 200
    assert response.json()["skill_quality"] == "excellent"


def test_reserve_release_and_cleanup(client):
    monday = next_weekday(0)
    asha = create_interviewer(client)
    reserved = client.post("/booking/reserve", json={
        "interviewer_id": asha["id"],
        "user_id": "cand-1",
        "slot": {"slot_date": monday.isoformat(), "start_time": "11:00"},
    })
    assert reserved.status_code == 201, reserved.text
    reservation_id = reserved.json()["id"]

    assert client.delete(f"/booking/reservations/{reservation_id}").status_code == 204
    assert client.delete(f"/booking/reservations/{reservation_id}").status_code == 404
    assert client.post("/booking/reservations/cleanup").json() == {"deleted": 0}


def test_cancel_interview_endpoint(client):
    monday = next_weekday(0)
    asha = create_interviewer(client)
    confirmed = client.post("/booking/confirm", json={
        "interviewer_id": asha["id"],
        "candidate_id": "cand-1",
        "slot": {"slot_date": monday.isoformat(), "start_time": "09:00"},
    }).json()
    cancelled = client.post(f"/booking/interviews/{confirmed['id']}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert client.post("/booking/interviews/missing/cancel").status_code == 404


# === Time blocks ===

def test_block_list_unblock(client):
    monday = next_weekday(0)
    asha = create_interviewer(client)
    created = client.post("/blocks", json={
        "interviewer_id": asha["id"],
        "blocked_date": monday.isoformat(),
        "start_time": "09:00",
        "end_time": "10:00",
    })
    assert created.status_code == 201, created.text

    listed = client.get(f"/blocks/{asha['id']}").json()
    assert [b["start_time"] for b in listed] == ["09:00"]

    assert client.delete(f"/blocks/{created.json()['id']}").status_code == 204
    assert client.delete(f"/blocks/{created.json()['id']}").status_code == 404
    assert client.get(f"/blocks/{asha['id']}").json() == []


def test_block_with_bad_clock_is_422(client):
    asha = create_interviewer(client)
    response = client.post("/blocks", json={
        "interviewer_id": asha["id"],
        "blocked_date": next_weekday(0).isoformat(),
        "start_time": "25:00",
        "end_time": "26:00",
    })
    assert response.status_code == 422


def test_availability_check_reflects_blocks(client):
    monday = next_weekday(0)
    asha = create_interviewer(client)
    client.post("/blocks", json={
        "interviewer_id": asha["id"],
        "blocked_date": monday.isoformat(),
        "start_time": "09:00",
        "end_time": "10:00",
    })

    def check(start_time, **params):
        return client.get(
            f"/blocks/{asha['id']}/available",
            params={"on_date": monday.isoformat(), "start_time": start_time, **params},
        )

    busy = check("09:30")
    assert busy.status_code == 200, busy.text
    assert busy.json()["available"] is False
    assert check("10:00").json() == {
        "interviewer_id": asha["id"],
        "date": monday.isoformat(),
        "start_time": "10:00",
        "duration_minutes": 60,
        "available": True,
    }
    assert check("08:30", duration_minutes=30).json()["available"] is True
    assert check("25:00").status_code == 422
    assert client.get(
        "/blocks/nope/available", params={"on_date": monday.isoformat(), "start_time": "10:00"}
    ).status_code == 404
