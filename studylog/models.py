from django.db import models

from .records import Activity, ActiveRecord, SessionRecord


class StudySession(models.Model):
    session_id = models.CharField(max_length=64, unique=True)       # Client- or server-generated id (doubles as idempotency key)
    activity = models.CharField(max_length=16, choices=Activity.choices)
    start_time = models.DateTimeField()                             # Activity start (UTC)
    end_time = models.DateTimeField()                               # Activity end (UTC)
    duration = models.PositiveIntegerField()                        # Minutes, at least 1
    words_learned = models.PositiveIntegerField(default=0)
    questions_answered = models.PositiveIntegerField(default=0)
    correct_answers = models.PositiveIntegerField(default=0)
    score = models.PositiveSmallIntegerField(default=0)             # Percentage 0-100
    date = models.DateField(db_index=True)                          # Calendar day stamped when the record was saved
    created_at = models.DateTimeField(auto_now_add=True)            # Insertion time (server-side)

    class Meta:
        ordering = ("created_at", "id")
        constraints = [
            models.CheckConstraint(condition=models.Q(end_time__gte=models.F("start_time")),
                                   name="ck_session_end_after_start"),
            models.CheckConstraint(condition=models.Q(correct_answers__lte=models.F("questions_answered")),
                                   name="ck_session_correct_le_answered"),
        ]

    def to_record(self) -> SessionRecord:
        return SessionRecord(
            id=self.session_id,
            activity=self.activity,
            start_time=self.start_time,
            end_time=self.end_time,
            duration=self.duration,
            words_learned=self.words_learned,
            questions_answered=self.questions_answered,
            correct_answers=self.correct_answers,
            score=self.score,
            date=self.date,
        )


class ActiveSession(models.Model):
    session_id = models.CharField(max_length=64, unique=True)
    activity = models.CharField(max_length=16, choices=Activity.choices)
    start_time = models.DateTimeField()

    def to_record(self) -> ActiveRecord:
        return ActiveRecord(id=self.session_id, activity=self.activity, start_time=self.start_time)
