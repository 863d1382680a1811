from django.db import migrations, models


ACTIVITY_CHOICES = [
    ("flashcards", "Flashcards"),
    ("reading", "Reading"),
    ("writing", "Writing"),
    ("chatbot", "Chatbot"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="StudySession",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("session_id", models.CharField(max_length=64, unique=True)),
                ("activity", models.CharField(choices=ACTIVITY_CHOICES, max_length=16)),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                ("duration", models.PositiveIntegerField()),
                ("words_learned", models.PositiveIntegerField(default=0)),
                ("questions_answered", models.PositiveIntegerField(default=0)),
                ("correct_answers", models.PositiveIntegerField(default=0)),
                ("score", models.PositiveSmallIntegerField(default=0)),
                ("date", models.DateField(db_index=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ("created_at", "id"),
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_time__gte=models.F("start_time")),
                        name="ck_session_end_after_start",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(correct_answers__lte=models.F("questions_answered")),
                        name="ck_session_correct_le_answered",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ActiveSession",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("session_id", models.CharField(max_length=64, unique=True)),
                ("activity", models.CharField(choices=ACTIVITY_CHOICES, max_length=16)),
                ("start_time", models.DateTimeField()),
            ],
        ),
    ]
