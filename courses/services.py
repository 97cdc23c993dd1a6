from __future__ import annotations

import logging
from typing import Iterable, Sequence

from django.db.models import Count, Q

from accounts.services import display_name, get_user, users_by_ids
from hallmark.exceptions import NotFoundError, ValidationError
from hallmark.ids import canonical_id, expand_ids, id_variants, try_canonical_id

from .models import Course, Enrollment

logger = logging.getLogger(__name__)


def course_catalogue() -> list[Course]:
    return list(Course.objects.order_by("code"))


def courses_for_lecturer(lecturer_id) -> list[Course]:
    return list(Course.objects.filter(lecturer_id__in=id_variants(lecturer_id)).order_by("code"))


def enrolled_course_ids(student_id, *, active_only: bool = True) -> list[str]:
    """Canonical ids of the courses ``student_id`` is enrolled in."""
    enrollments = Enrollment.objects.filter(student_id__in=id_variants(student_id))
    if active_only:
        enrollments = enrollments.filter(is_active=True)
    course_ids = []
    for course_id in enrollments.values_list("course_id", flat=True):
        canonical = try_canonical_id(course_id)
        if canonical and canonical not in course_ids:
            course_ids.append(canonical)
    return course_ids


def enrolled_student_ids(course_id) -> list[str]:
    """Canonical ids of students actively enrolled in ``course_id``."""
    student_ids = []
    for student_id in Enrollment.objects.filter(
        course_id__in=id_variants(course_id), is_active=True
    ).values_list("student_id", flat=True):
        canonical = try_canonical_id(student_id)
        if canonical and canonical not in student_ids:
            student_ids.append(canonical)
    return student_ids


def courses_for_student(student_id) -> list[dict]:
    """Enrolled courses with the lecturer name and number of assignments."""
    from coursework.models import Assignment

    courses = list(Course.objects.filter(pk__in=enrolled_course_ids(student_id)).order_by("code"))
    lecturers = users_by_ids(course.lecturer_id for course in courses)
    counts = dict(
        Assignment.objects.filter(course_id__in=expand_ids(course.pk for course in courses))
        .values("course_id")
        .annotate(total=Count("id"))
        .values_list("course_id", "total")
    )

    entries = []
    for course in courses:
        assignments_count = sum(
            counts.get(variant, 0) for variant in id_variants(course.pk)
        )
        entries.append(
            {
                "course": course,
                "lecturer_name": display_name(
                    lecturers.get(try_canonical_id(course.lecturer_id) or ""), "Unassigned"
                ),
                "assignments_count": assignments_count,
            }
        )
    return entries


def enroll_student(student_id, course_ids: Sequence) -> list[Enrollment]:
    """Enroll a student in every course of ``course_ids`` they are not already in.

    Returns the enrollments created or reactivated by this call; an empty
    list means the student already held all of them.
    """
    student = canonical_id(student_id, "Student ID")
    if not course_ids:
        raise ValidationError("At least one course must be selected")

    requested: list[str] = []
    for course_id in course_ids:
        canonical = canonical_id(course_id, "Course ID")
        if canonical not in requested:
            requested.append(canonical)

    found = {str(pk) for pk in Course.objects.filter(pk__in=requested).values_list("pk", flat=True)}
    missing = [course_id for course_id in requested if course_id not in found]
    if missing:
        raise NotFoundError(f"Course not found: {', '.join(missing)}")

    existing = list(
        Enrollment.objects.filter(
            student_id__in=id_variants(student),
            course_id__in=expand_ids(requested),
        )
    )
    known = {try_canonical_id(enrollment.course_id) for enrollment in existing}
    # A course with an active row in either id form is already held.
    active = {
        try_canonical_id(enrollment.course_id) for enrollment in existing if enrollment.is_active
    }
    reactivate = [
        enrollment.pk
        for enrollment in existing
        if not enrollment.is_active and try_canonical_id(enrollment.course_id) not in active
    ]
    new_course_ids = [course_id for course_id in requested if course_id not in known]
    if not new_course_ids and not reactivate:
        return []

    if reactivate:
        Enrollment.objects.filter(pk__in=reactivate).update(is_active=True)
        logger.info("Reactivated %d enrollment(s) for student %s", len(reactivate), student)

    if new_course_ids:
        level = _student_level(student)
        Enrollment.objects.bulk_create(
            [
                Enrollment(student_id=student, course_id=course_id, level=level)
                for course_id in new_course_ids
            ],
            ignore_conflicts=True,
        )
    enrollments = list(
        Enrollment.objects.filter(
            Q(student_id=student, course_id__in=new_course_ids) | Q(pk__in=reactivate)
        ).order_by("enrolled_at")
    )
    logger.info("Enrolled student %s in %d course(s)", student, len(enrollments))
    return enrollments


def _student_level(student_id: str) -> int | None:
    student = get_user(student_id)
    return student.level if student is not None else None


def deactivate_enrollments(student_id, course_ids: Iterable) -> int:
    return Enrollment.objects.filter(
        student_id__in=id_variants(student_id),
        course_id__in=expand_ids(course_ids),
    ).update(is_active=False)
