"""Lecturer gradebook.

Lists everything a lecturer has to grade or has graded.  Submissions are
reached through the lecturer's courses and assignments, grades through
``graded_by``.  Historical data is not always consistent: a grade may point
at a submission that can no longer be found, and references may be stored in
either id form.  Such grades are still listed, as :class:`VirtualSubmission`
entries built from the grade itself.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Iterable, Mapping, Union

from django.db import DatabaseError
from django.db.models import Q

from accounts.services import display_name, users_by_ids
from courses.models import Course
from hallmark.exceptions import ValidationError
from hallmark.ids import expand_ids, id_variants, try_canonical_id

from .models import Assignment, Grade, Submission

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_GRADED = "graded"
STATUS_ALL = "all"
STATUS_FILTERS = (STATUS_PENDING, STATUS_GRADED, STATUS_ALL)

_PENDING_STATUSES = {Submission.Status.SUBMITTED, "pending"}
_DEFAULT_TOTAL_MARKS = 100


@dataclass(frozen=True)
class GradeView:
    id: str
    score: Decimal
    penalty_applied: Decimal
    final_score: Decimal
    feedback: str
    graded_by: str
    graded_at: datetime

    @classmethod
    def from_grade(cls, grade: Grade) -> "GradeView":
        return cls(
            id=str(grade.pk),
            score=grade.score,
            penalty_applied=grade.penalty_applied,
            final_score=grade.final_score,
            feedback=grade.feedback,
            graded_by=grade.graded_by,
            graded_at=grade.graded_at,
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "score": self.score,
            "penalty_applied": self.penalty_applied,
            "final_score": self.final_score,
            "feedback": self.feedback,
            "graded_by": self.graded_by,
            "graded_at": self.graded_at,
        }


@dataclass(frozen=True)
class _Entry:
    id: str
    assignment_id: str
    student_id: str
    student_name: str
    assignment_title: str
    total_marks: int
    submitted_at: datetime
    is_late: bool
    hours_late: int
    status: str
    grade: GradeView | None
    file_urls: list = field(default_factory=list)

    is_virtual: ClassVar[bool] = False

    @property
    def sort_key(self) -> datetime:
        return self.grade.graded_at if self.grade is not None else self.submitted_at

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "assignment_id": self.assignment_id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "assignment_title": self.assignment_title,
            "total_marks": self.total_marks,
            "file_urls": list(self.file_urls),
            "submitted_at": self.submitted_at,
            "is_late": self.is_late,
            "hours_late": self.hours_late,
            "status": self.status,
            "grade": self.grade.as_dict() if self.grade is not None else None,
            "is_virtual": self.is_virtual,
        }


@dataclass(frozen=True)
class RealSubmission(_Entry):
    """A stored submission, with its grade when one exists."""


@dataclass(frozen=True)
class VirtualSubmission(_Entry):
    """Placeholder for a grade whose submission record is missing.

    Lateness is approximated from the penalty: any penalty counts as one day
    late.  ``grade`` is always set.
    """

    is_virtual: ClassVar[bool] = True


GradableItem = Union[RealSubmission, VirtualSubmission]


def lecturer_course_ids(lecturer_id) -> list[str]:
    return [
        str(pk)
        for pk in Course.objects.filter(lecturer_id__in=id_variants(lecturer_id)).values_list(
            "pk", flat=True
        )
    ]


def lecturer_assignment_ids(lecturer_id) -> list[str]:
    """Assignments in the lecturer's courses or created by them."""
    query = Q(created_by__in=id_variants(lecturer_id))
    course_ids = lecturer_course_ids(lecturer_id)
    if course_ids:
        query |= Q(course_id__in=expand_ids(course_ids))
    return [str(pk) for pk in Assignment.objects.filter(query).values_list("pk", flat=True)]


def _reference_key(value) -> str:
    return try_canonical_id(value) or str(value)


def _one_grade_per_submission(grades: Iterable[Grade]) -> dict[str, Grade]:
    """Map each submission to its newest grade.

    ``Grade.submission_id`` is only unique as text, so old rows can hold two
    grades for one submission under both id forms.  The older one is left out
    of the listing and logged.
    """
    kept: dict[str, Grade] = {}
    for grade in sorted(grades, key=lambda g: g.graded_at, reverse=True):
        key = _reference_key(grade.submission_id)
        if key in kept:
            logger.warning(
                "Grade %s duplicates grade %s for submission %s and is not listed",
                grade.pk,
                kept[key].pk,
                key,
            )
            continue
        kept[key] = grade
    return kept


def _load_users(user_ids: Iterable) -> Mapping:
    try:
        return users_by_ids(user_ids)
    except DatabaseError:
        logger.warning("Student lookup failed while building gradebook", exc_info=True)
        return {}


def _load_assignments(assignment_ids: Iterable) -> Mapping[str, Assignment]:
    canonical = {try_canonical_id(value) for value in assignment_ids}
    canonical.discard(None)
    if not canonical:
        return {}
    try:
        return {str(a.pk): a for a in Assignment.objects.filter(pk__in=canonical)}
    except DatabaseError:
        logger.warning("Assignment lookup failed while building gradebook", exc_info=True)
        return {}


def build_gradebook(lecturer_id, status_filter: str | None = STATUS_PENDING) -> list[GradableItem]:
    """Return the lecturer's submissions and grades, most recently actioned first.

    Every grade given by the lecturer appears exactly once, attached to its
    submission or as a :class:`VirtualSubmission`, and no submission is
    listed twice.  When two of the lecturer's grades point at one submission
    only the newest is listed.
    """
    status_filter = status_filter or STATUS_PENDING
    if status_filter not in STATUS_FILTERS:
        raise ValidationError(
            f"Invalid status filter: {status_filter}. Use one of {', '.join(STATUS_FILTERS)}"
        )

    assignment_ids = lecturer_assignment_ids(lecturer_id)
    lecturer_grades = list(Grade.objects.filter(graded_by__in=id_variants(lecturer_id)))

    assignment_refs = expand_ids(assignment_ids + [grade.assignment_id for grade in lecturer_grades])
    graded_submission_pks = {try_canonical_id(grade.submission_id) for grade in lecturer_grades}
    graded_submission_pks.discard(None)

    query = Q(assignment_id__in=assignment_refs)
    if graded_submission_pks:
        query |= Q(pk__in=graded_submission_pks)
    submissions = list(Submission.objects.filter(query)) if assignment_refs or graded_submission_pks else []

    own_grades = _one_grade_per_submission(lecturer_grades)

    # Grades keyed by the submission they belong to, the lecturer's own first.
    grades_by_submission: dict[str, Grade] = {}
    if submissions:
        other_grades = Grade.objects.filter(
            submission_id__in=expand_ids(submission.pk for submission in submissions)
        ).exclude(graded_by__in=id_variants(lecturer_id))
        for grade in other_grades:
            grades_by_submission.setdefault(_reference_key(grade.submission_id), grade)
    grades_by_submission.update(own_grades)

    users = _load_users(
        [submission.student_id for submission in submissions]
        + [grade.student_id for grade in lecturer_grades]
    )
    assignments = _load_assignments(
        [submission.assignment_id for submission in submissions]
        + [grade.assignment_id for grade in lecturer_grades]
    )

    items: list[GradableItem] = []
    seen_submissions: set[str] = set()
    for submission in submissions:
        key = str(submission.pk)
        seen_submissions.add(key)
        items.append(_real_entry(submission, grades_by_submission.get(key), users, assignments))

    for key, grade in own_grades.items():
        if key in seen_submissions:
            continue
        seen_submissions.add(key)
        items.append(_virtual_entry(grade, users, assignments))

    if status_filter == STATUS_PENDING:
        items = [item for item in items if item.status in _PENDING_STATUSES]
    elif status_filter == STATUS_GRADED:
        items = [item for item in items if item.status == Submission.Status.GRADED]

    items.sort(key=lambda item: item.sort_key, reverse=True)
    return items


def _real_entry(submission: Submission, grade: Grade | None, users, assignments) -> RealSubmission:
    assignment = assignments.get(try_canonical_id(submission.assignment_id) or "")
    student = users.get(try_canonical_id(submission.student_id) or "")
    return RealSubmission(
        id=str(submission.pk),
        assignment_id=submission.assignment_id,
        student_id=submission.student_id,
        student_name=display_name(student, "Unknown Student"),
        assignment_title=assignment.title if assignment else "Unknown Assignment",
        total_marks=assignment.total_marks if assignment else _DEFAULT_TOTAL_MARKS,
        file_urls=list(submission.file_urls or []),
        submitted_at=submission.submitted_at,
        is_late=submission.is_late,
        hours_late=submission.hours_late,
        status=Submission.Status.GRADED if grade is not None else submission.status,
        grade=GradeView.from_grade(grade) if grade is not None else None,
    )


def _virtual_entry(grade: Grade, users, assignments) -> VirtualSubmission:
    assignment = assignments.get(try_canonical_id(grade.assignment_id) or "")
    student = users.get(try_canonical_id(grade.student_id) or "")
    penalised = grade.penalty_applied > 0
    return VirtualSubmission(
        id=grade.submission_id,
        assignment_id=grade.assignment_id,
        student_id=grade.student_id,
        student_name=display_name(student, "Student (Record Missing)"),
        assignment_title=assignment.title if assignment else "Assignment (Record Missing)",
        total_marks=assignment.total_marks if assignment else _DEFAULT_TOTAL_MARKS,
        file_urls=[],
        submitted_at=grade.graded_at,
        is_late=penalised,
        hours_late=24 if penalised else 0,
        status=Submission.Status.GRADED,
        grade=GradeView.from_grade(grade),
    )
