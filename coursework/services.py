"""Assignment, submission and grading operations.

Views call these functions and let DRF render the exceptions they raise.
References to other documents are stored in canonical form; lookups by a
reference go through :func:`hallmark.ids.id_variants` so rows written with
the legacy hex form are still found.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from django.db import IntegrityError, transaction
from django.utils import timezone

from accounts.services import display_name, get_user, users_by_ids
from courses.models import Course
from courses.services import enrolled_course_ids, enrolled_student_ids
from hallmark.exceptions import (
    AlreadyGradedError,
    DeadlineClosedError,
    DeadlinePassedError,
    DuplicateSubmissionError,
    NotFoundError,
    ValidationError,
)
from hallmark.ids import canonical_id, expand_ids, id_variants, try_canonical_id
from notifications.emails import EmailKind, send_templated_email
from notifications.rendering import render_rich_text

from .activity import log_event
from .gradebook import build_gradebook, lecturer_assignment_ids
from .lateness import WindowOutcome, apply_late_penalty, evaluate_submission_window, validate_score
from .models import ActivityLog, Assignment, Grade, Submission
from .storage import discard_files, store_files, submission_path

logger = logging.getLogger(__name__)


def format_due_date(value: datetime) -> str:
    return timezone.localtime(value).strftime("%A, %d %B %Y %H:%M %Z")


def get_course(course_id) -> Course | None:
    canonical = try_canonical_id(course_id)
    if canonical is None:
        return None
    return Course.objects.filter(pk=canonical).first()


def get_assignment(assignment_id) -> Assignment:
    assignment = Assignment.objects.filter(pk=canonical_id(assignment_id, "Assignment ID")).first()
    if assignment is None:
        raise NotFoundError("Assignment not found")
    return assignment


def create_assignment(lecturer_id, data: dict) -> Assignment:
    """Store a new assignment and tell the enrolled students about it.

    ``data`` holds the validated fields of the assignment.  A failed broadcast
    is logged; the assignment is kept either way.
    """
    lecturer = canonical_id(lecturer_id, "Lecturer ID")
    course = get_course(data.get("course_id"))
    if course is None:
        raise NotFoundError("Course not found")

    cutoff_days = data.get("cutoff_days")
    assignment = Assignment.objects.create(
        course_id=str(course.pk),
        title=data["title"],
        description=data.get("description") or "",
        deadline=data["deadline"],
        total_marks=data.get("total_marks") or 100,
        created_by=lecturer,
        accept_late=bool(data.get("accept_late")),
        cutoff_days=cutoff_days if cutoff_days is not None else 7,
        penalty_percent=data.get("penalty_percent") or 0,
        file_url=data.get("file_url") or "",
    )
    logger.info("Assignment %s created for course %s", assignment.pk, course.code)

    _broadcast_new_assignment(assignment, course)
    log_event(
        f'New Assignment: "{assignment.title}" created for {course.label}',
        actor=lecturer,
        details={"assignment_id": str(assignment.pk), "course_id": str(course.pk)},
        level=ActivityLog.Level.SUCCESS,
    )
    return assignment


def _broadcast_new_assignment(assignment: Assignment, course: Course) -> bool:
    students = users_by_ids(enrolled_student_ids(course.pk))
    emails = [student.email for student in students.values() if student.email]
    if not emails:
        return False
    sent = send_templated_email(
        emails,
        EmailKind.NEW_ASSIGNMENT,
        {
            "course_name": course.label,
            "assignment_title": assignment.title,
            "due_date": format_due_date(assignment.deadline),
            "description_html": render_rich_text(assignment.description),
        },
    )
    if not sent:
        logger.warning("New assignment email for %s was not delivered", assignment.pk)
    return sent


def assignments_for_lecturer(lecturer_id) -> list[dict]:
    """Assignments created by the lecturer, newest first, with their course code."""
    assignments = list(
        Assignment.objects.filter(created_by__in=id_variants(lecturer_id)).order_by("-created_at")
    )
    courses = {
        str(course.pk): course
        for course in Course.objects.filter(
            pk__in={try_canonical_id(a.course_id) for a in assignments} - {None}
        )
    }
    entries = []
    for assignment in assignments:
        course = courses.get(try_canonical_id(assignment.course_id) or "")
        entries.append({"assignment": assignment, "course_code": course.code if course else None})
    return entries


def delete_assignment(assignment_id, *, actor=None) -> None:
    assignment = get_assignment(assignment_id)
    title = assignment.title
    assignment.delete()
    logger.info("Assignment %s deleted", assignment_id)
    log_event(
        f'Assignment "{title}" deleted',
        actor=actor or "",
        details={"assignment_id": str(assignment_id)},
        level=ActivityLog.Level.WARNING,
    )


def submit_assignment(assignment_id, student_id, files: Sequence, now: datetime | None = None) -> Submission:
    """Store the student's files and record their one submission for the assignment."""
    assignment_id = canonical_id(assignment_id, "Assignment ID")
    student_id = canonical_id(student_id, "Student ID")
    if not files:
        raise ValidationError("No files provided")

    assignment = Assignment.objects.filter(pk=assignment_id).first()
    if assignment is None:
        raise NotFoundError("Assignment not found")

    already_submitted = Submission.objects.filter(
        assignment_id__in=id_variants(assignment_id),
        student_id__in=id_variants(student_id),
    ).exists()
    if already_submitted:
        raise DuplicateSubmissionError()

    now = now or timezone.now()
    window = evaluate_submission_window(now, assignment.deadline, assignment.late_policy)
    if window.outcome is WindowOutcome.REJECTED_PAST_DEADLINE:
        raise DeadlinePassedError()
    if window.outcome is WindowOutcome.REJECTED_CLOSED:
        raise DeadlineClosedError(window.cutoff_days)

    stored = store_files(
        (submission_path(assignment_id, student_id, getattr(upload, "name", "")), upload)
        for upload in files
    )

    try:
        with transaction.atomic():
            submission = Submission.objects.create(
                assignment_id=assignment_id,
                student_id=student_id,
                file_urls=[file.url for file in stored],
                submitted_at=now,
                is_late=window.lateness.is_late,
                hours_late=window.lateness.hours_late,
                status=Submission.Status.SUBMITTED,
            )
    except IntegrityError as exc:
        # Lost the race to a concurrent submission.
        discard_files(stored)
        raise DuplicateSubmissionError() from exc

    logger.info(
        "Submission %s stored for assignment %s (late=%s, hours_late=%d)",
        submission.pk,
        assignment_id,
        submission.is_late,
        submission.hours_late,
    )
    log_event(
        f'Submission received for "{assignment.title}"',
        actor=student_id,
        details={"submission_id": str(submission.pk), "is_late": submission.is_late},
    )
    return submission


def grade_submission(submission_id, lecturer_id, score, feedback: str = "", now: datetime | None = None) -> Grade:
    """Grade a submission once, applying the assignment's late penalty."""
    submission_id = canonical_id(submission_id, "Submission ID")
    lecturer_id = canonical_id(lecturer_id, "Lecturer ID")

    submission = Submission.objects.filter(pk=submission_id).first()
    if submission is None:
        raise NotFoundError("Submission not found")
    assignment_pk = try_canonical_id(submission.assignment_id)
    assignment = Assignment.objects.filter(pk=assignment_pk).first() if assignment_pk else None
    if assignment is None:
        raise NotFoundError("Assignment not found")

    raw_score = validate_score(score, assignment.total_marks)
    if Grade.objects.filter(submission_id__in=id_variants(submission_id)).exists():
        raise AlreadyGradedError()

    penalty = apply_late_penalty(
        raw_score,
        assignment.total_marks,
        submission.is_late,
        submission.hours_late,
        assignment.late_policy,
    )
    student_id = try_canonical_id(submission.student_id) or submission.student_id
    try:
        with transaction.atomic():
            grade = Grade.objects.create(
                submission_id=submission_id,
                assignment_id=str(assignment.pk),
                student_id=student_id,
                score=raw_score,
                feedback=feedback or "",
                graded_by=lecturer_id,
                penalty_applied=penalty.penalty_applied,
                final_score=penalty.final_score,
                graded_at=now or timezone.now(),
            )
            Submission.objects.filter(pk=submission.pk).update(status=Submission.Status.GRADED)
    except IntegrityError as exc:
        raise AlreadyGradedError() from exc

    logger.info(
        "Grade created for submission %s: score=%s penalty=%s final=%s",
        submission_id,
        grade.score,
        grade.penalty_applied,
        grade.final_score,
    )
    _notify_grade(grade, assignment)
    log_event(
        f'Grade submitted for "{assignment.title}"',
        actor=lecturer_id,
        details={"submission_id": submission_id, "final_score": str(grade.final_score)},
        level=ActivityLog.Level.SUCCESS,
    )
    return grade


def _notify_grade(grade: Grade, assignment: Assignment) -> bool:
    student = get_user(grade.student_id)
    if student is None or not student.email:
        logger.warning("No email address for student %s, grade email skipped", grade.student_id)
        return False
    course = get_course(assignment.course_id)
    return send_templated_email(
        student.email,
        EmailKind.GRADE,
        {
            "course_name": course.label if course else "",
            "assignment_title": assignment.title,
            "final_score": grade.final_score,
            "total_marks": assignment.total_marks,
            "feedback_html": render_rich_text(grade.feedback),
        },
    )


def student_assignment_detail(assignment_id, student_id) -> dict:
    student_id = canonical_id(student_id, "Student ID")
    assignment = get_assignment(assignment_id)
    course = get_course(assignment.course_id)
    lecturer = get_user(assignment.created_by)
    policy = assignment.late_policy

    submission = Submission.objects.filter(
        assignment_id__in=id_variants(assignment.pk),
        student_id__in=id_variants(student_id),
    ).first()
    grade = Grade.objects.filter(
        assignment_id__in=id_variants(assignment.pk),
        student_id__in=id_variants(student_id),
    ).first()
    if grade is None and submission is not None:
        grade = Grade.objects.filter(submission_id__in=id_variants(submission.pk)).first()

    return {
        "assignment": assignment,
        "course_code": course.code if course else None,
        "course_name": course.name if course else None,
        "lecturer_name": display_name(lecturer, "Unknown Lecturer"),
        "is_late_allowed": policy.accept_late,
        "cutoff_days": policy.effective_cutoff_days,
        "penalty_percent": policy.penalty_percent,
        "submission": submission,
        "grade": grade,
    }


def assignments_for_student(student_id, now: datetime | None = None) -> list[dict]:
    """Assignments of the student's active courses with their submission state."""
    student_id = canonical_id(student_id, "Student ID")
    now = now or timezone.now()
    course_ids = enrolled_course_ids(student_id)
    courses = {str(course.pk): course for course in Course.objects.filter(pk__in=course_ids)}
    assignments = list(
        Assignment.objects.filter(course_id__in=expand_ids(course_ids)).order_by("deadline")
    )
    submissions = {
        try_canonical_id(submission.assignment_id): submission
        for submission in Submission.objects.filter(
            student_id__in=id_variants(student_id),
            assignment_id__in=expand_ids(a.pk for a in assignments),
        )
    }

    entries = []
    for assignment in assignments:
        course = courses.get(try_canonical_id(assignment.course_id) or "")
        submission = submissions.get(str(assignment.pk))
        window = evaluate_submission_window(now, assignment.deadline, assignment.late_policy)
        entries.append(
            {
                "assignment": assignment,
                "course_code": course.code if course else None,
                "course_name": course.name if course else None,
                "submission": submission,
                "is_open": submission is None and window.allowed,
            }
        )
    return entries


def lecturer_stats(lecturer_id) -> dict:
    lecturer_id = canonical_id(lecturer_id, "Lecturer ID")
    items = build_gradebook(lecturer_id, status_filter="all")
    return {
        "total_assignments": len(lecturer_assignment_ids(lecturer_id)),
        "pending_submissions": sum(1 for item in items if item.status != Submission.Status.GRADED),
        "completed_submissions": sum(1 for item in items if item.status == Submission.Status.GRADED),
    }


def student_stats(student_id, now: datetime | None = None) -> dict:
    student_id = canonical_id(student_id, "Student ID")
    entries = assignments_for_student(student_id, now=now)
    submitted = Submission.objects.filter(student_id__in=id_variants(student_id)).count()
    graded = Grade.objects.filter(student_id__in=id_variants(student_id)).count()
    return {
        "active": sum(1 for entry in entries if entry["is_open"]),
        "submitted": submitted,
        "graded": graded,
    }
