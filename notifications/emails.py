"""Templated email notifications.

Callers hand over a template kind and its data; delivery problems are logged
and reported through the boolean return value so that the data change the
email follows is never undone by a failed notification.
"""
from __future__ import annotations

import enum
import logging
from typing import Iterable

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


class EmailKind(str, enum.Enum):
    WELCOME = "welcome"
    NEW_ASSIGNMENT = "new_assignment"
    NEW_MATERIAL = "new_material"
    GRADE = "grade"
    DEADLINE_REMINDER = "deadline_reminder"


SUBJECTS = {
    EmailKind.WELCOME: "Welcome to Hallmark Assignment - Verify Your Email",
    EmailKind.NEW_ASSIGNMENT: "[New Assignment] {course_name}: {assignment_title}",
    EmailKind.NEW_MATERIAL: "[New Material] {course_name}: {material_title}",
    EmailKind.GRADE: "Grade Released: {assignment_title}",
    EmailKind.DEADLINE_REMINDER: "[Reminder] {assignment_title} is due in {hours_remaining} hour(s)",
}


def _recipients(to: str | Iterable[str]) -> list[str]:
    if isinstance(to, str):
        to = [to]
    unique: list[str] = []
    for address in to:
        address = (address or "").strip()
        if address and address not in unique:
            unique.append(address)
    return unique


def build_message(to: str | Iterable[str], kind: EmailKind, data: dict) -> EmailMultiAlternatives:
    kind = EmailKind(kind)
    recipients = _recipients(to)
    context = {"app_url": settings.APP_URL, **data}
    subject = SUBJECTS[kind].format(**context)
    html = render_to_string(f"notifications/email/{kind.value}.html", context)

    if isinstance(to, str) or len(recipients) == 1:
        message = EmailMultiAlternatives(subject, strip_tags(html), to=recipients)
    else:
        # Bulk mail goes to the sender with students in BCC.
        message = EmailMultiAlternatives(
            subject,
            strip_tags(html),
            to=[settings.DEFAULT_FROM_EMAIL],
            bcc=recipients,
        )
    message.attach_alternative(html, "text/html")
    return message


def send_templated_email(to: str | Iterable[str], kind: EmailKind, data: dict) -> bool:
    """Send one email of ``kind`` to one address or a batch of addresses."""
    recipients = _recipients(to)
    if not recipients:
        logger.debug("Skipping %s email: no recipients", kind)
        return False

    try:
        message = build_message(recipients if len(recipients) > 1 else recipients[0], kind, data)
        message.send()
    except Exception:
        logger.exception("Failed to send %s email to %d recipient(s)", EmailKind(kind).value, len(recipients))
        return False

    logger.info("Sent %s email to %d recipient(s)", EmailKind(kind).value, len(recipients))
    return True
