"""Deadline reminders for students who have not submitted yet.

Run from ``manage.py send_deadline_reminders`` or the cron endpoint.  Nothing
records which students were already reminded, so running the scan twice
inside the look-ahead window reminds the same students twice.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from django.utils import timezone

from accounts.services import users_by_ids
from courses.services import enrolled_student_ids
from hallmark.ids import expand_ids, id_variants, try_canonical_id
from notifications.emails import EmailKind, send_templated_email

from .models import Assignment, Submission
from .services import format_due_date, get_course

logger = logging.getLogger(__name__)

REMINDER_LOOKAHEAD_HOURS = 24


@dataclass
class ReminderReport:
    assignment_title: str
    reminded_count: int

    def as_dict(self) -> dict:
        return {"assignment_title": self.assignment_title, "reminded_count": self.reminded_count}


@dataclass
class ReminderScan:
    checked: int = 0
    reports: list[ReminderReport] = field(default_factory=list)
    failures: int = 0

    @property
    def reminded_count(self) -> int:
        return sum(report.reminded_count for report in self.reports)


class ReminderDeliveryError(Exception):
    pass


def upcoming_assignments(now: datetime, hours: int = REMINDER_LOOKAHEAD_HOURS) -> list[Assignment]:
    return list(
        Assignment.objects.filter(
            deadline__gt=now,
            deadline__lte=now + timedelta(hours=hours),
        ).order_by("deadline")
    )


def hours_remaining(deadline: datetime, now: datetime) -> int:
    # Halves round up.
    return max(1, math.floor((deadline - now) / timedelta(hours=1) + 0.5))


def pending_student_ids(assignment: Assignment) -> list[str]:
    """Actively enrolled students with no submission for ``assignment``."""
    candidates = enrolled_student_ids(assignment.course_id)
    if not candidates:
        return []
    submitted = {
        try_canonical_id(student_id)
        for student_id in Submission.objects.filter(
            assignment_id__in=id_variants(assignment.pk),
            student_id__in=expand_ids(candidates),
        ).values_list("student_id", flat=True)
    }
    return [student_id for student_id in candidates if student_id not in submitted]


def remind_assignment(assignment: Assignment, now: datetime) -> ReminderReport | None:
    pending = pending_student_ids(assignment)
    if not pending:
        return None

    students = users_by_ids(pending)
    emails = [student.email for student in students.values() if student.email]
    if not emails:
        logger.warning("No email addresses for %d pending student(s) of %s", len(pending), assignment.pk)
        return None

    course = get_course(assignment.course_id)
    sent = send_templated_email(
        emails,
        EmailKind.DEADLINE_REMINDER,
        {
            "course_name": course.label if course else "",
            "assignment_title": assignment.title,
            "due_date": format_due_date(assignment.deadline),
            "hours_remaining": hours_remaining(assignment.deadline, now),
        },
    )
    if not sent:
        raise ReminderDeliveryError(f"Reminder email for {assignment.pk} was not delivered")
    return ReminderReport(assignment_title=assignment.title, reminded_count=len(emails))


def scan_deadline_reminders(now: datetime | None = None) -> ReminderScan:
    """Send one batched reminder per assignment due within the look-ahead window."""
    now = now or timezone.now()
    scan = ReminderScan()
    for assignment in upcoming_assignments(now):
        scan.checked += 1
        try:
            report = remind_assignment(assignment, now)
        except Exception:
            scan.failures += 1
            logger.exception("Deadline reminder failed for assignment %s", assignment.pk)
            continue
        if report is not None:
            scan.reports.append(report)

    logger.info(
        "Reminder batch sent: %d assignment(s) checked, %d student(s) reminded, %d failure(s)",
        scan.checked,
        scan.reminded_count,
        scan.failures,
    )
    return scan
