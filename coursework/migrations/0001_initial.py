import uuid
from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ActivityLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=120)),
                ("actor", models.CharField(blank=True, max_length=255)),
                ("details", models.JSONField(blank=True, default=dict)),
                (
                    "level",
                    models.CharField(
                        choices=[("info", "Info"), ("success", "Success"), ("warning", "Warning"), ("error", "Error")],
                        default="info",
                        max_length=10,
                    ),
                ),
                ("timestamp", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={"ordering": ("-timestamp",)},
        ),
        migrations.CreateModel(
            name="Assignment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("course_id", models.CharField(db_index=True, max_length=64)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("deadline", models.DateTimeField(db_index=True)),
                (
                    "total_marks",
                    models.PositiveIntegerField(
                        default=100, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("created_by", models.CharField(db_index=True, max_length=64)),
                ("accept_late", models.BooleanField(default=False)),
                (
                    "cutoff_days",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        default=7,
                        help_text="Days after the deadline during which late work is still accepted",
                        null=True,
                    ),
                ),
                (
                    "penalty_percent",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Points deducted for every started day past the deadline",
                        max_digits=6,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("file_url", models.CharField(blank=True, max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"ordering": ("-created_at",)},
        ),
        migrations.CreateModel(
            name="Grade",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("submission_id", models.CharField(max_length=64, unique=True)),
                ("assignment_id", models.CharField(db_index=True, max_length=64)),
                ("student_id", models.CharField(db_index=True, max_length=64)),
                ("score", models.DecimalField(decimal_places=2, max_digits=8)),
                ("feedback", models.TextField(blank=True)),
                ("graded_by", models.CharField(db_index=True, max_length=64)),
                ("penalty_applied", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=8)),
                ("final_score", models.DecimalField(decimal_places=2, max_digits=8)),
                ("graded_at", models.DateTimeField()),
            ],
            options={"ordering": ("-graded_at",)},
        ),
        migrations.CreateModel(
            name="Submission",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("assignment_id", models.CharField(db_index=True, max_length=64)),
                ("student_id", models.CharField(db_index=True, max_length=64)),
                ("file_urls", models.JSONField(blank=True, default=list)),
                ("submitted_at", models.DateTimeField()),
                ("is_late", models.BooleanField(default=False)),
                ("hours_late", models.PositiveIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[("submitted", "Submitted"), ("graded", "Graded")],
                        default="submitted",
                        max_length=16,
                    ),
                ),
            ],
            options={"ordering": ("-submitted_at",)},
        ),
        migrations.AddConstraint(
            model_name="submission",
            constraint=models.UniqueConstraint(
                fields=("assignment_id", "student_id"),
                name="coursework_submission_unique_assignment_student",
            ),
        ),
    ]
