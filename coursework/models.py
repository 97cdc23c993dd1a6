import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from .lateness import DEFAULT_CUTOFF_DAYS, LatePolicy


class Assignment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course_id = models.CharField(max_length=64, db_index=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    deadline = models.DateTimeField(db_index=True)
    total_marks = models.PositiveIntegerField(default=100, validators=[MinValueValidator(1)])
    created_by = models.CharField(max_length=64, db_index=True)
    accept_late = models.BooleanField(default=False)
    cutoff_days = models.PositiveSmallIntegerField(
        default=DEFAULT_CUTOFF_DAYS,
        null=True,
        blank=True,
        help_text="Days after the deadline during which late work is still accepted",
    )
    penalty_percent = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Points deducted for every started day past the deadline",
    )
    file_url = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return self.title

    @property
    def late_policy(self) -> LatePolicy:
        return LatePolicy(
            accept_late=self.accept_late,
            cutoff_days=self.cutoff_days,
            penalty_percent=self.penalty_percent,
        )


class Submission(models.Model):
    class Status(models.TextChoices):
        SUBMITTED = "submitted", "Submitted"
        GRADED = "graded", "Graded"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    assignment_id = models.CharField(max_length=64, db_index=True)
    student_id = models.CharField(max_length=64, db_index=True)
    file_urls = models.JSONField(default=list, blank=True)
    submitted_at = models.DateTimeField()
    is_late = models.BooleanField(default=False)
    hours_late = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.SUBMITTED)

    class Meta:
        ordering = ("-submitted_at",)
        constraints = [
            models.UniqueConstraint(
                fields=["assignment_id", "student_id"],
                name="coursework_submission_unique_assignment_student",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.student_id} @ {self.assignment_id}"


class Grade(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    submission_id = models.CharField(max_length=64, unique=True)
    assignment_id = models.CharField(max_length=64, db_index=True)
    student_id = models.CharField(max_length=64, db_index=True)
    score = models.DecimalField(max_digits=8, decimal_places=2)
    feedback = models.TextField(blank=True)
    graded_by = models.CharField(max_length=64, db_index=True)
    penalty_applied = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0"))
    final_score = models.DecimalField(max_digits=8, decimal_places=2)
    graded_at = models.DateTimeField()

    class Meta:
        ordering = ("-graded_at",)

    def __str__(self) -> str:
        return f"{self.final_score} for {self.submission_id}"


class ActivityLog(models.Model):
    class Level(models.TextChoices):
        INFO = "info", "Info"
        SUCCESS = "success", "Success"
        WARNING = "warning", "Warning"
        ERROR = "error", "Error"

    action = models.CharField(max_length=120)
    actor = models.CharField(max_length=255, blank=True)
    details = models.JSONField(default=dict, blank=True)
    level = models.CharField(max_length=10, choices=Level.choices, default=Level.INFO)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ("-timestamp",)

    def __str__(self) -> str:
        return f"[{self.level}] {self.action}"


class Material(models.Model):
    """Lecture notes and other files a lecturer shares with a course."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course_id = models.CharField(max_length=64, db_index=True)
    lecturer_id = models.CharField(max_length=64, db_index=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    file_urls = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return self.title
