import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Course",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(db_index=True, max_length=20, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "level",
                    models.PositiveSmallIntegerField(
                        choices=[(100, "100 level"), (200, "200 level"), (300, "300 level"), (400, "400 level")]
                    ),
                ),
                (
                    "lecturer_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Id of the lecturer who leads the course",
                        max_length=64,
                    ),
                ),
                (
                    "semester",
                    models.CharField(
                        choices=[("1", "First semester"), ("2", "Second semester")],
                        default="1",
                        max_length=1,
                    ),
                ),
            ],
            options={
                "ordering": ("code",),
            },
        ),
        migrations.CreateModel(
            name="Enrollment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("student_id", models.CharField(db_index=True, max_length=64)),
                ("course_id", models.CharField(db_index=True, max_length=64)),
                (
                    "level",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        choices=[(100, "100 level"), (200, "200 level"), (300, "300 level"), (400, "400 level")],
                        null=True,
                    ),
                ),
                ("enrolled_at", models.DateTimeField(auto_now_add=True)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "verbose_name": "Student enrollment",
                "verbose_name_plural": "Student enrollments",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("student_id", "course_id"),
                        name="courses_enrollment_unique_student_course",
                    )
                ],
            },
        ),
    ]
