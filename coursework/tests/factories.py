from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from django.utils import timezone

from accounts.models import User
from courses.models import Course, Enrollment
from coursework.models import Assignment, Grade, Material, Submission


def create_user(*, role: str = User.Role.STUDENT, email: str | None = None, **extra) -> User:
    email = email or f"{role}-{uuid4().hex[:8]}@uni.test"
    defaults = {
        "first_name": role.title(),
        "last_name": uuid4().hex[:6],
        "level": 100 if role == User.Role.STUDENT else None,
    }
    defaults.update(extra)
    return User.objects.create(email=email, username=email, role=role, **defaults)


def create_student(**extra) -> User:
    return create_user(role=User.Role.STUDENT, **extra)


def create_lecturer(**extra) -> User:
    return create_user(role=User.Role.LECTURER, **extra)


def create_course(*, lecturer: User | None = None, lecturer_id: str | None = None, **extra) -> Course:
    if lecturer_id is None:
        lecturer_id = str(lecturer.pk) if lecturer is not None else ""
    defaults = {
        "code": f"CSC{uuid4().hex[:4]}",
        "name": "Data Structures",
        "level": 100,
    }
    defaults.update(extra)
    return Course.objects.create(lecturer_id=lecturer_id, **defaults)


def enroll(student: User, course: Course, **extra) -> Enrollment:
    return Enrollment.objects.create(student_id=str(student.pk), course_id=str(course.pk), **extra)


def create_assignment(
    *,
    course: Course | None = None,
    lecturer: User | None = None,
    deadline: datetime | None = None,
    **extra,
) -> Assignment:
    lecturer = lecturer or create_lecturer()
    course = course or create_course(lecturer=lecturer)
    defaults = {
        "title": f"Assignment {uuid4().hex[:6]}",
        "description": "Implement a linked list.",
        "total_marks": 100,
        "accept_late": True,
        "cutoff_days": 7,
        "penalty_percent": Decimal("10"),
    }
    defaults.update(extra)
    return Assignment.objects.create(
        course_id=str(course.pk),
        created_by=str(lecturer.pk),
        deadline=deadline or timezone.now() + timedelta(days=3),
        **defaults,
    )


def create_submission(
    *,
    assignment: Assignment,
    student: User,
    submitted_at: datetime | None = None,
    **extra,
) -> Submission:
    defaults = {
        "file_urls": ["/media/report.pdf"],
        "is_late": False,
        "hours_late": 0,
        "status": Submission.Status.SUBMITTED,
    }
    defaults.update(extra)
    return Submission.objects.create(
        assignment_id=str(assignment.pk),
        student_id=str(student.pk),
        submitted_at=submitted_at or timezone.now(),
        **defaults,
    )


def create_grade(
    *,
    submission_id: str,
    assignment_id: str,
    student_id: str,
    graded_by: str,
    score: Decimal = Decimal("80"),
    penalty_applied: Decimal = Decimal("0"),
    graded_at: datetime | None = None,
    **extra,
) -> Grade:
    return Grade.objects.create(
        submission_id=submission_id,
        assignment_id=assignment_id,
        student_id=student_id,
        graded_by=graded_by,
        score=score,
        penalty_applied=penalty_applied,
        final_score=max(Decimal("0"), score - penalty_applied),
        graded_at=graded_at or timezone.now(),
        **extra,
    )


def create_material(*, course: Course | None = None, lecturer: User | None = None, **extra) -> Material:
    lecturer = lecturer or create_lecturer()
    course = course or create_course(lecturer=lecturer)
    defaults = {
        "title": f"Lecture {uuid4().hex[:4]}",
        "file_urls": ["/media/materials/notes.pdf"],
    }
    defaults.update(extra)
    return Material.objects.create(course_id=str(course.pk), lecturer_id=str(lecturer.pk), **defaults)
