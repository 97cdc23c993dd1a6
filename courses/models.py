import uuid

from django.db import models

from accounts.models import User


class TimeStampedModel(models.Model):
    """Reusable timestamped base model for course entities."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Course(TimeStampedModel):
    class Semester(models.TextChoices):
        FIRST = "1", "First semester"
        SECOND = "2", "Second semester"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=20, unique=True, db_index=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    level = models.PositiveSmallIntegerField(choices=User.Level.choices)
    lecturer_id = models.CharField(
        max_length=64,
        blank=True,
        db_index=True,
        help_text="Id of the lecturer who leads the course",
    )
    semester = models.CharField(
        max_length=1,
        choices=Semester.choices,
        default=Semester.FIRST,
    )

    class Meta:
        ordering = ("code",)

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"


class Enrollment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student_id = models.CharField(max_length=64, db_index=True)
    course_id = models.CharField(max_length=64, db_index=True)
    level = models.PositiveSmallIntegerField(choices=User.Level.choices, null=True, blank=True)
    enrolled_at = models.DateTimeField(auto_now_add=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = "Student enrollment"
        verbose_name_plural = "Student enrollments"
        constraints = [
            models.UniqueConstraint(
                fields=["student_id", "course_id"],
                name="courses_enrollment_unique_student_course",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.student_id} → {self.course_id}"
