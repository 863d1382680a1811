# studylog/records.py
from __future__ import annotations

import dataclasses
import datetime as dt
import math

from django.db import models


class Activity(models.TextChoices):
    FLASHCARDS = "flashcards", "Flashcards"
    READING = "reading", "Reading"
    WRITING = "writing", "Writing"
    CHATBOT = "chatbot", "Chatbot"


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves upwards."""
    return int(math.floor(x + 0.5))


_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


def to_epoch_ms(d: dt.datetime) -> int:
    """Milliseconds since the epoch for a tz-aware datetime."""
    return (d - _EPOCH) // dt.timedelta(milliseconds=1)


def derive_duration(start: dt.datetime, end: dt.datetime) -> int:
    """Elapsed minutes, clamped to a minimum of 1."""
    minutes = round_half_up((end - start).total_seconds() / 60)
    return max(1, minutes)


def derive_score(questions_answered: int, correct_answers: int) -> int:
    """Integer percentage of correct answers; 0 when nothing was asked."""
    if questions_answered <= 0:
        return 0
    return round_half_up(100 * correct_answers / questions_answered)


@dataclasses.dataclass(frozen=True)
class SessionRecord:
    """A completed study session. Never mutated once created."""
    id: str
    activity: str
    start_time: dt.datetime
    end_time: dt.datetime
    duration: int
    words_learned: int
    questions_answered: int
    correct_answers: int
    score: int
    date: dt.date


@dataclasses.dataclass(frozen=True)
class ActiveRecord:
    """The in-flight session slot: started but not yet ended."""
    id: str
    activity: str
    start_time: dt.datetime
