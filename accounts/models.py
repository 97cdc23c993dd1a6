import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Account of a student, lecturer or administrator."""

    class Role(models.TextChoices):
        STUDENT = "student", "Student"
        LECTURER = "lecturer", "Lecturer"
        ADMIN = "admin", "Admin"

    class Level(models.IntegerChoices):
        L100 = 100, "100 level"
        L200 = 200, "200 level"
        L300 = 300, "300 level"
        L400 = 400, "400 level"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.STUDENT)
    identifier = models.CharField(
        max_length=64,
        blank=True,
        db_index=True,
        help_text="Matric number for students, lecturer number for lecturers",
    )
    level = models.PositiveSmallIntegerField(choices=Level.choices, null=True, blank=True)
    is_password_set = models.BooleanField(default=False)

    class Meta:
        ordering = ("last_name", "first_name")
        indexes = [models.Index(fields=["role"], name="accounts_user_role_idx")]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.full_name or self.email} ({self.role})"

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        if not self.username:
            self.username = self.email
        return super().save(*args, **kwargs)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
