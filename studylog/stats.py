# studylog/stats.py
from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Dict, Iterable, List, Optional

from .records import Activity, round_half_up, to_epoch_ms

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclasses.dataclass
class DailyStat:
    date: dt.date
    total_time: int = 0
    words_learned: int = 0
    average_score: float = 0.0
    sessions: int = 0

    def as_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "total_time": self.total_time,
            "words_learned": self.words_learned,
            "average_score": self.average_score,
            "sessions": self.sessions,
        }


@dataclasses.dataclass(frozen=True)
class Streak:
    current: int
    longest: int


@dataclasses.dataclass(frozen=True)
class Totals:
    total_time: int
    total_words: int
    average_score: int


def _as_date(value: str | dt.date) -> dt.date:
    """Accept a YYYY-MM-DD string or a date; datetimes are reduced to their date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(value)


def _day_diff(earlier: dt.date, later: dt.date) -> int:
    """Whole calendar days from earlier to later."""
    return (later - earlier).days


def compute_daily_stats(sessions: Iterable) -> List[DailyStat]:
    """
    Roll sessions up into one DailyStat per distinct date, sorted ascending.

    total_time and words_learned are plain sums. average_score is folded in one
    session at a time as (m*n + score) / (n+1), which equals the plain mean of
    the day's scores whatever the input order.
    """
    daily: Dict[dt.date, DailyStat] = {}
    for s in sessions:
        day = _as_date(s.date)
        stat = daily.get(day)
        if stat is None:
            stat = daily[day] = DailyStat(date=day)
        stat.total_time += s.duration
        stat.words_learned += s.words_learned
        stat.average_score = (stat.average_score * stat.sessions + s.score) / (stat.sessions + 1)
        stat.sessions += 1
    return sorted(daily.values(), key=lambda d: d.date)


def compute_streak(daily_stats: List[DailyStat], today: Optional[dt.date] = None) -> Streak:
    """
    Current and longest run of consecutive study days.

    daily_stats must already be sorted ascending by date. The current streak is
    only alive when the last study day is today or yesterday; it then counts
    backwards until the first gap. The longest streak is the longest run found
    anywhere in the history, and never less than the current one.
    """
    if not daily_stats:
        return Streak(current=0, longest=0)
    if today is None:
        today = dt.date.today()

    dates = [_as_date(d.date) for d in daily_stats]

    current = 0
    last = dates[-1]
    if last == today or last == today - dt.timedelta(days=1):
        current = 1
        for i in range(len(dates) - 2, -1, -1):
            if _day_diff(dates[i], dates[i + 1]) == 1:
                current += 1
            else:
                break

    longest = 0
    run = 1
    for i in range(1, len(dates)):
        if _day_diff(dates[i - 1], dates[i]) == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    return Streak(current=current, longest=max(longest, current))


def compute_totals(sessions: Iterable) -> Totals:
    sessions = list(sessions)
    if not sessions:
        return Totals(total_time=0, total_words=0, average_score=0)
    total_time = sum(s.duration for s in sessions)
    total_words = sum(s.words_learned for s in sessions)
    avg = sum(s.score for s in sessions) / len(sessions)
    return Totals(total_time=total_time, total_words=total_words, average_score=round_half_up(avg))


def today_stats(sessions: Iterable, today: dt.date) -> Dict:
    todays = [s for s in sessions if _as_date(s.date) == today]
    return {
        "time": sum(s.duration for s in todays),
        "words": sum(s.words_learned for s in todays),
        "sessions": len(todays),
    }


def weekly_series(daily_stats: List[DailyStat], today: dt.date) -> List[Dict]:
    """Seven entries ending today, oldest first; days without study are zero-filled."""
    by_date = {_as_date(d.date): d for d in daily_stats}
    out = []
    for offset in range(6, -1, -1):
        day = today - dt.timedelta(days=offset)
        stat = by_date.get(day)
        out.append({
            "date": day.isoformat(),
            "day": WEEKDAY_NAMES[day.weekday()],
            "minutes": stat.total_time if stat else 0,
            "words": stat.words_learned if stat else 0,
            "score": round_half_up(stat.average_score) if stat else 0,
        })
    return out


def weekly_progress(sessions: Iterable, today: dt.date, goal_minutes: int) -> int:
    """Minutes studied over the seven days ending today as a percentage of goal_minutes (may exceed 100)."""
    if goal_minutes <= 0:
        return 0
    week_ago = today - dt.timedelta(days=7)
    minutes = sum(s.duration for s in sessions if _as_date(s.date) > week_ago)
    return round_half_up(minutes * 100 / goal_minutes)


def performance_trend(daily_stats: List[DailyStat], days: int = 14) -> List[Dict]:
    if days <= 0:
        return []
    return [
        {"date": _as_date(d.date).isoformat(), "score": round_half_up(d.average_score)}
        for d in daily_stats[-days:]
    ]


def activity_breakdown(sessions: Iterable) -> List[Dict]:
    """Minutes per activity in Activity order; activities never practised are left out."""
    minutes = {a.value: 0 for a in Activity}
    for s in sessions:
        minutes[Activity(s.activity).value] += s.duration
    return [
        {"activity": a.value, "name": a.label, "minutes": minutes[a.value]}
        for a in Activity
        if minutes[a.value] > 0
    ]


def achievements(sessions: List, streak: Streak, totals: Totals) -> List[Dict]:
    first = sessions[0] if sessions else None
    return [
        {
            "id": "first_lesson",
            "title": "First Lesson",
            "description": "Complete your first study session",
            "unlocked": first is not None,
            "unlocked_at": to_epoch_ms(first.start_time) if first else None,
        },
        _threshold("streak_7", "7-Day Streak", "Study for 7 consecutive days", streak.current, 7),
        _threshold("words_100", "100 Words", "Learn 100 words", totals.total_words, 100),
        {
            "id": "perfect_score",
            "title": "Perfect Score",
            "description": "Get 100% on any activity",
            "unlocked": any(s.score == 100 for s in sessions),
        },
        _threshold("hours_10", "10 Hours", "Study for 10 total hours", totals.total_time, 600),
        _threshold("streak_30", "30-Day Streak", "Study for 30 consecutive days", streak.current, 30),
    ]


def _threshold(id_: str, title: str, description: str, progress: int, target: int) -> Dict:
    return {
        "id": id_,
        "title": title,
        "description": description,
        "unlocked": progress >= target,
        "progress": progress,
        "target": target,
    }


def insights(streak: Streak, weekly_progress: int, totals: Totals, weekly_goal: int) -> List[Dict]:
    """
    Short encouragement messages, at most four, in a fixed order:
    active streak, weekly goal (reached, or at least 75% of the way), average
    score of 90 or more, and words learned so far.
    """
    out = []
    if streak.current > 0:
        out.append({
            "id": "streak",
            "title": f"Amazing! {streak.current}-day streak!",
            "description": "You're on fire! Keep it going!",
        })

    if weekly_progress >= 100:
        out.append({
            "id": "weekly_goal",
            "title": "Weekly goal achieved!",
            "description": "Fantastic work this week!",
        })
    elif weekly_progress >= 75:
        remaining = round_half_up(weekly_goal - weekly_progress * weekly_goal / 100)
        out.append({
            "id": "weekly_goal",
            "title": "Almost there!",
            "description": f"{remaining} mins to hit your weekly goal",
        })

    if totals.average_score >= 90:
        out.append({
            "id": "performance",
            "title": "Excellent performance!",
            "description": f"Your average score is {totals.average_score}%",
        })

    if totals.total_words > 0:
        out.append({
            "id": "words",
            "title": f"{totals.total_words} words learned",
            "description": "Your vocabulary is growing!",
        })

    return out[:4]
