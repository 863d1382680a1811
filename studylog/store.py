# studylog/store.py
from __future__ import annotations

import abc
from typing import List, Optional

from django.db import IntegrityError, transaction

from .models import ActiveSession, StudySession
from .records import ActiveRecord, SessionRecord


class DuplicateSession(ValueError):
    """A session with this id is already in the history."""


class SessionStore(abc.ABC):
    """
    Append-only history of completed sessions plus the single in-flight slot.
    Records come back in insertion order; nothing is updated in place.
    """

    @abc.abstractmethod
    def append(self, record: SessionRecord) -> SessionRecord:
        """Add a record to the history. Raises DuplicateSession if its id is already stored."""

    @abc.abstractmethod
    def load_all(self) -> List[SessionRecord]: ...

    @abc.abstractmethod
    def get(self, session_id: str) -> Optional[SessionRecord]: ...

    @abc.abstractmethod
    def clear(self) -> None:
        """Full reset: history and active slot."""

    @abc.abstractmethod
    def set_active(self, active: ActiveRecord) -> None: ...

    @abc.abstractmethod
    def get_active(self) -> Optional[ActiveRecord]: ...

    @abc.abstractmethod
    def clear_active(self) -> None: ...


class InMemorySessionStore(SessionStore):
    def __init__(self, records: Optional[List[SessionRecord]] = None):
        self._records: List[SessionRecord] = list(records or [])
        self._active: Optional[ActiveRecord] = None

    def append(self, record: SessionRecord) -> SessionRecord:
        if self.get(record.id) is not None:
            raise DuplicateSession(f"session {record.id} already exists")
        self._records.append(record)
        return record

    def load_all(self) -> List[SessionRecord]:
        return list(self._records)

    def get(self, session_id: str) -> Optional[SessionRecord]:
        return next((r for r in self._records if r.id == session_id), None)

    def clear(self) -> None:
        self._records.clear()
        self._active = None

    def set_active(self, active: ActiveRecord) -> None:
        self._active = active

    def get_active(self) -> Optional[ActiveRecord]:
        return self._active

    def clear_active(self) -> None:
        self._active = None


class DatabaseSessionStore(SessionStore):
    """Django ORM backed store. Rows are converted to immutable SessionRecords on the way out."""

    def append(self, record: SessionRecord) -> SessionRecord:
        try:
            with transaction.atomic():
                obj = StudySession.objects.create(
                    session_id=record.id,
                    activity=record.activity,
                    start_time=record.start_time,
                    end_time=record.end_time,
                    duration=record.duration,
                    words_learned=record.words_learned,
                    questions_answered=record.questions_answered,
                    correct_answers=record.correct_answers,
                    score=record.score,
                    date=record.date,
                )
        except IntegrityError:
            if StudySession.objects.filter(session_id=record.id).exists():
                raise DuplicateSession(f"session {record.id} already exists") from None
            raise
        return obj.to_record()

    def load_all(self) -> List[SessionRecord]:
        return [obj.to_record() for obj in StudySession.objects.order_by("created_at", "id")]

    def get(self, session_id: str) -> Optional[SessionRecord]:
        obj = StudySession.objects.filter(session_id=session_id).first()
        return obj.to_record() if obj is not None else None

    def clear(self) -> None:
        with transaction.atomic():
            StudySession.objects.all().delete()
            ActiveSession.objects.all().delete()

    def set_active(self, active: ActiveRecord) -> None:
        # Single slot: a newly started session replaces whatever was in flight.
        with transaction.atomic():
            ActiveSession.objects.all().delete()
            ActiveSession.objects.create(
                session_id=active.id,
                activity=active.activity,
                start_time=active.start_time,
            )

    def get_active(self) -> Optional[ActiveRecord]:
        obj = ActiveSession.objects.first()
        return obj.to_record() if obj is not None else None

    def clear_active(self) -> None:
        ActiveSession.objects.all().delete()
