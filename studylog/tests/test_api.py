# studylog/tests/test_api.py
import datetime as dt

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from studylog import services
from studylog.store import DatabaseSessionStore


def _quick(c, **overrides):
    payload = {
        "activity": "flashcards",
        "duration": 10,
        "words_learned": 5,
        "questions_answered": 4,
        "correct_answers": 3,
    }
    payload.update(overrides)
    return c.post("/api/sessions", payload, format="json")


def _seed(days_ago, duration=10, score_pair=(1, 1), words=5, activity="reading"):
    """Insert a session dated `days_ago` days before the current local day."""
    q, correct = score_pair
    now = timezone.now() - dt.timedelta(days=days_ago)
    return services.save_quick_session(
        DatabaseSessionStore(), activity, duration=duration, words_learned=words,
        questions_answered=q, correct_answers=correct, now=now,
    )


@pytest.mark.django_db
def test_quick_save_creates_and_echoes_record():
    c = APIClient()
    r = _quick(c)
    assert r.status_code == 201
    obj = r.json()
    assert obj["id"].startswith("session_")
    assert obj["activity"] == "flashcards"
    assert obj["duration"] == 10
    assert obj["score"] == 75
    assert obj["end_time"] - obj["start_time"] == 10 * 60 * 1000
    assert obj["date"] == timezone.localdate().isoformat()


@pytest.mark.django_db
def test_idempotent_quick_save_success_and_replay():
    c = APIClient()
    r1 = _quick(c, id="idem-1")
    assert r1.status_code == 201
    r2 = _quick(c, id="idem-1")
    assert r2.status_code == 200
    assert r2.json() == r1.json()
    assert len(c.get("/api/sessions").json()) == 1


@pytest.mark.django_db
def test_idempotency_header_conflict_with_different_payload_409():
    c = APIClient()
    assert c.post("/api/sessions", {"activity": "reading", "duration": 5, "words_learned": 1},
                  format="json", HTTP_IDEMPOTENCY_KEY="idem-x").status_code == 201

    r_conf = c.post("/api/sessions", {"activity": "reading", "duration": 6, "words_learned": 1},
                    format="json", HTTP_IDEMPOTENCY_KEY="idem-x")
    assert r_conf.status_code == 409
    assert "Idempotency-Key reused" in r_conf.json().get("detail", "")


@pytest.mark.django_db
@pytest.mark.parametrize("overrides, field", [
    ({"activity": "gardening"}, "activity"),
    ({"duration": 0}, "duration"),
    ({"words_learned": -1}, "words_learned"),
    ({"questions_answered": 1, "correct_answers": 2}, "correct_answers"),
])
def test_quick_save_rejects_invalid_input(overrides, field):
    r = _quick(APIClient(), **overrides)
    assert r.status_code == 400
    assert field in r.json()["detail"]


@pytest.mark.django_db
def test_start_and_end_session_lifecycle():
    c = APIClient()
    r_start = c.post("/api/sessions/start", {"activity": "chatbot"}, format="json")
    assert r_start.status_code == 201
    sid = r_start.json()["id"]

    r_end = c.post(f"/api/sessions/{sid}/end",
                   {"words_learned": 8, "questions_answered": 10, "correct_answers": 9},
                   format="json")
    assert r_end.status_code == 201
    obj = r_end.json()
    assert obj["id"] == sid
    assert obj["activity"] == "chatbot"
    assert obj["duration"] == 1
    assert obj["score"] == 90

    # the slot is consumed
    r_again = c.post(f"/api/sessions/{sid}/end", {"words_learned": 0}, format="json")
    assert r_again.status_code == 404


@pytest.mark.django_db
def test_end_unknown_session_404():
    c = APIClient()
    c.post("/api/sessions/start", {"activity": "reading"}, format="json")
    r = c.post("/api/sessions/session_0_nothere/end", {"words_learned": 1}, format="json")
    assert r.status_code == 404


@pytest.mark.django_db
def test_end_session_already_saved_by_another_request_404():
    c = APIClient()
    sid = c.post("/api/sessions/start", {"activity": "reading"}, format="json").json()["id"]
    services.save_quick_session(
        DatabaseSessionStore(), "reading", duration=3, words_learned=0,
        questions_answered=0, correct_answers=0, session_id=sid,
    )
    r = c.post(f"/api/sessions/{sid}/end", {"words_learned": 1}, format="json")
    assert r.status_code == 404
    assert [s["id"] for s in c.get("/api/sessions").json()] == [sid]


@pytest.mark.django_db
def test_list_filters_by_date_and_keeps_insertion_order():
    c = APIClient()
    old = _seed(3)
    new = _seed(0)
    older = _seed(10)

    ids = [s["id"] for s in c.get("/api/sessions").json()]
    assert ids == [old.id, new.id, older.id]

    r = c.get(f"/api/sessions?date={new.date.isoformat()}")
    assert [s["id"] for s in r.json()] == [new.id]

    assert c.get("/api/sessions?date=27/10/2025").status_code == 400


@pytest.mark.django_db
def test_delete_resets_history():
    c = APIClient()
    _quick(c)
    c.post("/api/sessions/start", {"activity": "writing"}, format="json")
    assert c.delete("/api/sessions").status_code == 204
    assert c.get("/api/sessions").json() == []
    assert DatabaseSessionStore().get_active() is None


@pytest.mark.django_db
def test_stats_empty_history():
    r = APIClient().get("/api/stats")
    assert r.status_code == 200
    data = r.json()
    assert data["daily"] == []
    assert data["streak"] == {"current": 0, "longest": 0}
    assert data["totals"] == {"total_time": 0, "total_words": 0, "average_score": 0}
    assert data["weekly"]["progress"] == 0
    assert data["activity_breakdown"] == []
    assert data["insights"] == []


@pytest.mark.django_db
def test_stats_five_consecutive_days_ending_yesterday():
    for d in range(1, 6):
        _seed(d, duration=60, score_pair=(4, 3 if d % 2 else 4), words=10 * d)

    data = APIClient().get("/api/stats?weekly_goal=600").json()
    assert data["streak"]["current"] == 5
    assert data["streak"]["longest"] >= 5
    assert data["totals"]["total_time"] == 300
    assert data["totals"]["total_words"] == 150
    # three sessions at 75, two at 100 -> 85
    assert data["totals"]["average_score"] == 85
    assert data["weekly"]["goal_minutes"] == 600
    assert data["weekly"]["progress"] == 50
    assert data["today_stats"] == {"time": 0, "words": 0, "sessions": 0}
    assert len(data["daily"]) == 5


@pytest.mark.django_db
def test_stats_old_run_is_longest_but_not_current():
    for d in (10, 9, 8):
        _seed(d)
    data = APIClient().get("/api/stats").json()
    assert data["streak"] == {"current": 0, "longest": 3}


@pytest.mark.django_db
def test_stats_daily_rollup_and_breakdown():
    _seed(0, duration=10, score_pair=(2, 2), words=5, activity="reading")
    _seed(0, duration=5, score_pair=(2, 1), words=2, activity="writing")

    data = APIClient().get("/api/stats").json()
    assert data["daily"] == [{
        "date": timezone.localdate().isoformat(),
        "total_time": 15,
        "words_learned": 7,
        "average_score": 75.0,
        "sessions": 2,
    }]
    assert data["streak"] == {"current": 1, "longest": 1}
    assert data["activity_breakdown"] == [
        {"activity": "reading", "name": "Reading", "minutes": 10},
        {"activity": "writing", "name": "Writing", "minutes": 5},
    ]
    assert data["weekly"]["series"][-1]["minutes"] == 15
    perfect = next(a for a in data["achievements"] if a["id"] == "perfect_score")
    assert perfect["unlocked"] is True


@pytest.mark.django_db
def test_stats_rejects_bad_query_params():
    c = APIClient()
    r_tz = c.get("/api/stats?tz=Mars/Olympus")
    assert r_tz.status_code == 400
    assert r_tz.json()["detail"] == "invalid tz."

    assert c.get("/api/stats?weekly_goal=lots").status_code == 400
    assert c.get("/api/stats?weekly_goal=-5").status_code == 400
    assert c.get("/api/stats?tz=Asia/Tokyo&weekly_goal=0").status_code == 200
