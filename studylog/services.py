# studylog/services.py
from __future__ import annotations

import datetime as dt
import logging
import secrets
import string
from typing import Dict, List, Optional

import pytz
from django.conf import settings
from django.utils import timezone

from . import stats
from .records import (
    Activity,
    ActiveRecord,
    SessionRecord,
    derive_duration,
    derive_score,
    to_epoch_ms,
)
from .store import DuplicateSession, SessionStore

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class InvalidSession(ValueError):
    """Session input that fails boundary validation."""


class SessionNotFound(LookupError):
    """No in-flight session matches the given id."""


def studylog_setting(name: str):
    return settings.STUDYLOG[name]


def new_session_id(now: dt.datetime) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"session_{to_epoch_ms(now)}_{suffix}"


def _now(now: Optional[dt.datetime]) -> dt.datetime:
    """Current time (or the given one) as a tz-aware UTC datetime."""
    if now is None:
        now = timezone.now()
    if timezone.is_naive(now):
        now = timezone.make_aware(now, dt.timezone.utc)
    return now.astimezone(dt.timezone.utc)


def _stamp_date(now: dt.datetime) -> dt.date:
    """Calendar day of the save moment in the configured time zone."""
    return timezone.localdate(now)


def _parse_activity(activity: str) -> Activity:
    try:
        return Activity(activity)
    except ValueError:
        raise InvalidSession(
            f"activity must be one of {'|'.join(Activity.values)}"
        ) from None


def _validate_counts(words_learned: int, questions_answered: int, correct_answers: int) -> None:
    for name, v in (
        ("words_learned", words_learned),
        ("questions_answered", questions_answered),
        ("correct_answers", correct_answers),
    ):
        if v < 0:
            raise InvalidSession(f"{name} must be >= 0.")
    if correct_answers > questions_answered:
        raise InvalidSession("correct_answers must be <= questions_answered.")


def resolve_today(tz: Optional[str] = None) -> dt.date:
    """Today's calendar day in tz (IANA name), or in the configured time zone when tz is None."""
    if tz is None:
        return timezone.localdate()
    return timezone.now().astimezone(pytz.timezone(tz)).date()


def start_session(store: SessionStore, activity: str, *, now: Optional[dt.datetime] = None) -> ActiveRecord:
    """Open the in-flight slot for an activity, replacing any session already in flight."""
    now = _now(now)
    active = ActiveRecord(id=new_session_id(now), activity=_parse_activity(activity).value, start_time=now)
    store.set_active(active)
    logger.info("Study session started: %s (%s)", active.id, active.activity)
    return active


def end_session(
    store: SessionStore,
    session_id: str,
    *,
    words_learned: int,
    questions_answered: int,
    correct_answers: int,
    now: Optional[dt.datetime] = None,
) -> SessionRecord:
    """
    Close the in-flight session and append it to the history.

    duration is the elapsed time rounded to whole minutes (at least 1); score is
    the rounded percentage of correct answers; date is the calendar day at the
    moment of saving.
    """
    _validate_counts(words_learned, questions_answered, correct_answers)
    active = store.get_active()
    if active is None or active.id != session_id:
        raise SessionNotFound(f"no active session {session_id}")

    now = _now(now)
    end_time = max(now, active.start_time)
    record = SessionRecord(
        id=active.id,
        activity=active.activity,
        start_time=active.start_time,
        end_time=end_time,
        duration=derive_duration(active.start_time, end_time),
        words_learned=words_learned,
        questions_answered=questions_answered,
        correct_answers=correct_answers,
        score=derive_score(questions_answered, correct_answers),
        date=_stamp_date(now),
    )
    try:
        record = store.append(record)
    except DuplicateSession:
        # Another request ended this session first.
        raise SessionNotFound(f"no active session {session_id}") from None
    store.clear_active()
    logger.info("Study session saved: %s", record.id)
    return record


def build_quick_session(
    activity: str,
    *,
    duration: int,
    words_learned: int,
    questions_answered: int,
    correct_answers: int,
    now: Optional[dt.datetime] = None,
    session_id: Optional[str] = None,
) -> SessionRecord:
    """Build (without saving) a session that ended now and lasted duration minutes."""
    activity = _parse_activity(activity)
    if duration < 1:
        raise InvalidSession("duration must be >= 1.")
    _validate_counts(words_learned, questions_answered, correct_answers)

    now = _now(now)
    return SessionRecord(
        id=session_id or new_session_id(now),
        activity=activity.value,
        start_time=now - dt.timedelta(minutes=duration),
        end_time=now,
        duration=duration,
        words_learned=words_learned,
        questions_answered=questions_answered,
        correct_answers=correct_answers,
        score=derive_score(questions_answered, correct_answers),
        date=_stamp_date(now),
    )


def save_quick_session(store: SessionStore, activity: str, **kwargs) -> SessionRecord:
    """Record a finished activity in one step. Keyword arguments as for build_quick_session."""
    record = store.append(build_quick_session(activity, **kwargs))
    logger.info("Quick session saved: %s", record.id)
    return record


def reset_history(store: SessionStore) -> None:
    store.clear()
    logger.info("Study history cleared")


def summarize(
    sessions: List[SessionRecord],
    *,
    today: dt.date,
    weekly_goal: int,
    trend_days: int,
) -> Dict:
    """
    Every derived view over one snapshot of the history.

    Daily rollups, streak and totals are computed once; the dashboard views
    (today, week, trend, breakdown, achievements, insights) are built from them.
    """
    daily = stats.compute_daily_stats(sessions)
    streak = stats.compute_streak(daily, today=today)
    totals = stats.compute_totals(sessions)
    progress = stats.weekly_progress(sessions, today, weekly_goal)

    return {
        "today": today.isoformat(),
        "daily": [d.as_dict() for d in daily],
        "streak": {"current": streak.current, "longest": streak.longest},
        "totals": {
            "total_time": totals.total_time,
            "total_words": totals.total_words,
            "average_score": totals.average_score,
        },
        "today_stats": stats.today_stats(sessions, today),
        "weekly": {
            "goal_minutes": weekly_goal,
            "progress": progress,
            "series": stats.weekly_series(daily, today),
        },
        "trend": stats.performance_trend(daily, trend_days),
        "activity_breakdown": stats.activity_breakdown(sessions),
        "achievements": stats.achievements(sessions, streak, totals),
        "insights": stats.insights(streak, progress, totals, weekly_goal),
    }
