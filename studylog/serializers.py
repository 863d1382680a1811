# studylog/serializers.py
import datetime as dt

from django.utils import timezone
from rest_framework import serializers

from .records import Activity, to_epoch_ms


class EpochMillisField(serializers.Field):
    """
    Read-only datetime field rendered as milliseconds since the epoch.
    - Naive datetimes are taken to be UTC.
    """
    def __init__(self, **kwargs):
        kwargs["read_only"] = True
        super().__init__(**kwargs)

    def to_representation(self, value):
        if value is None:
            return None
        if timezone.is_naive(value):
            value = timezone.make_aware(value, dt.timezone.utc)
        return to_epoch_ms(value)


class SessionEndSerializer(serializers.Serializer):
    """
    Results of a finished activity.
    Notes:
      - all counts must be >= 0.
      - correct_answers must not exceed questions_answered.
    """
    words_learned = serializers.IntegerField(min_value=0)
    questions_answered = serializers.IntegerField(min_value=0, default=0)
    correct_answers = serializers.IntegerField(min_value=0, default=0)

    def validate(self, attrs):
        if attrs["correct_answers"] > attrs["questions_answered"]:
            raise serializers.ValidationError("correct_answers must be <= questions_answered.")
        return attrs


class QuickSessionCreateSerializer(SessionEndSerializer):
    """
    Serializer for a one-step save of a finished activity.
    Notes:
      - id is optional; when given (or sent as the Idempotency-Key header) it makes the save idempotent.
      - duration is in whole minutes, >= 1.
    """
    id = serializers.CharField(required=False, allow_blank=False, max_length=64)
    activity = serializers.ChoiceField(choices=Activity.choices)
    duration = serializers.IntegerField(min_value=1)


class SessionStartSerializer(serializers.Serializer):
    activity = serializers.ChoiceField(choices=Activity.choices)


class StudySessionSerializer(serializers.Serializer):
    """Read-only snapshot of a SessionRecord; times as epoch milliseconds."""
    id = serializers.CharField(read_only=True)
    activity = serializers.CharField(read_only=True)
    start_time = EpochMillisField()
    end_time = EpochMillisField()
    duration = serializers.IntegerField(read_only=True)
    words_learned = serializers.IntegerField(read_only=True)
    questions_answered = serializers.IntegerField(read_only=True)
    correct_answers = serializers.IntegerField(read_only=True)
    score = serializers.IntegerField(read_only=True)
    date = serializers.DateField(read_only=True)


class ActiveSessionSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    activity = serializers.CharField(read_only=True)
    start_time = EpochMillisField()
