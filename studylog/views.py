# studylog/views.py
from __future__ import annotations

import datetime as dt
import logging

import pytz
from django.db import transaction
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .records import SessionRecord
from .serializers import (
    ActiveSessionSerializer,
    QuickSessionCreateSerializer,
    SessionEndSerializer,
    SessionStartSerializer,
    StudySessionSerializer,
)
from .store import DatabaseSessionStore, DuplicateSession

logger = logging.getLogger(__name__)


def _error_detail(errors) -> str:
    """Flatten DRF serializer errors into a single 'detail' message."""
    field, messages = next(iter(errors.items()))
    msg = str(messages[0]) if isinstance(messages, list) else str(messages)
    if field == "non_field_errors":
        return msg
    return f"{field}: {msg}"


def _same_payload(record: SessionRecord, data: dict) -> bool:
    return (
        record.activity == data["activity"] and
        record.duration == data["duration"] and
        record.words_learned == data["words_learned"] and
        record.questions_answered == data["questions_answered"] and
        record.correct_answers == data["correct_answers"]
    )


def _replay(record: SessionRecord, data: dict) -> Response:
    """Same id seen before: accept only if payload is identical; otherwise 409."""
    if not _same_payload(record, data):
        return Response(
            {'detail': 'Idempotency-Key reused with different payload.'},
            status=status.HTTP_409_CONFLICT
        )
    return Response(StudySessionSerializer(record).data, status=status.HTTP_200_OK)


class StoreMixin:
    store_class = DatabaseSessionStore

    def get_store(self):
        return self.store_class()


class SessionListView(StoreMixin, APIView):
    """
    GET    /api/sessions[?date=YYYY-MM-DD]  history in insertion order
    POST   /api/sessions                    quick save (Idempotency-Key header or body id; 409 on conflict)
    DELETE /api/sessions                    full reset
    """
    def get(self, request):
        records = self.get_store().load_all()
        date_raw = request.query_params.get('date')
        if date_raw:
            try:
                day = dt.date.fromisoformat(date_raw)
            except ValueError:
                return Response({'detail': 'date must be YYYY-MM-DD.'}, status=400)
            records = [r for r in records if r.date == day]
        return Response(StudySessionSerializer(records, many=True).data)

    def post(self, request):
        ser = QuickSessionCreateSerializer(data=request.data or {})
        if not ser.is_valid():
            return Response({'detail': _error_detail(ser.errors)}, status=400)
        data = ser.validated_data
        idem = request.headers.get('Idempotency-Key') or data.get('id')

        store = self.get_store()
        if idem:
            existing = store.get(idem)
            if existing is not None:
                return _replay(existing, data)

        try:
            with transaction.atomic():
                record = services.save_quick_session(
                    store,
                    data['activity'],
                    duration=data['duration'],
                    words_learned=data['words_learned'],
                    questions_answered=data['questions_answered'],
                    correct_answers=data['correct_answers'],
                    session_id=idem,
                )
        except DuplicateSession:
            # Handle race: unique constraint hit, re-read and compare payload.
            existing = store.get(idem) if idem else None
            if existing is None:
                raise
            return _replay(existing, data)
        except services.InvalidSession as e:
            return Response({'detail': str(e)}, status=400)

        return Response(StudySessionSerializer(record).data, status=status.HTTP_201_CREATED)

    def delete(self, request):
        services.reset_history(self.get_store())
        return Response(status=status.HTTP_204_NO_CONTENT)


class SessionStartView(StoreMixin, APIView):
    """POST /api/sessions/start  open the in-flight slot for an activity."""
    def post(self, request):
        ser = SessionStartSerializer(data=request.data or {})
        if not ser.is_valid():
            return Response({'detail': _error_detail(ser.errors)}, status=400)
        active = services.start_session(self.get_store(), ser.validated_data['activity'])
        return Response(ActiveSessionSerializer(active).data, status=status.HTTP_201_CREATED)


class SessionEndView(StoreMixin, APIView):
    """POST /api/sessions/{session_id}/end  close the in-flight session and save it."""
    def post(self, request, session_id: str):
        ser = SessionEndSerializer(data=request.data or {})
        if not ser.is_valid():
            return Response({'detail': _error_detail(ser.errors)}, status=400)
        data = ser.validated_data
        try:
            with transaction.atomic():
                record = services.end_session(
                    self.get_store(),
                    session_id,
                    words_learned=data['words_learned'],
                    questions_answered=data['questions_answered'],
                    correct_answers=data['correct_answers'],
                )
        except services.SessionNotFound as e:
            return Response({'detail': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(StudySessionSerializer(record).data, status=status.HTTP_201_CREATED)


class StatsView(StoreMixin, APIView):
    """
    GET /api/stats
      ?tz=Asia/Tokyo        reference calendar day for "today" (default: configured TIME_ZONE)
      &weekly_goal=300      minutes per week (default: STUDYLOG['WEEKLY_GOAL_MINUTES'])
    Recomputes every derived view from the full history.
    """
    def get(self, request):
        tzname = request.query_params.get('tz')
        goal_raw = request.query_params.get('weekly_goal')

        if tzname is not None:
            try:
                pytz.timezone(tzname)
            except pytz.UnknownTimeZoneError:
                return Response({'detail': 'invalid tz.'}, status=400)

        if goal_raw is None:
            weekly_goal = services.studylog_setting('WEEKLY_GOAL_MINUTES')
        else:
            try:
                weekly_goal = int(goal_raw)
            except ValueError:
                return Response({'detail': 'weekly_goal must be an integer.'}, status=400)
            if weekly_goal < 0:
                return Response({'detail': 'weekly_goal must be >= 0.'}, status=400)

        sessions = self.get_store().load_all()
        today = services.resolve_today(tzname)
        logger.debug("Computing stats over %d sessions for %s", len(sessions), today)

        return Response(services.summarize(
            sessions,
            today=today,
            weekly_goal=weekly_goal,
            trend_days=services.studylog_setting('TREND_DAYS'),
        ), status=status.HTTP_200_OK)
