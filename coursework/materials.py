"""Course materials shared by lecturers.

Files are stored next to submissions in the blob store; the enrolled students
are told about new material by email.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from django.db import DatabaseError
from django.utils import timezone

from accounts.services import display_name, users_by_ids
from courses.models import Course
from courses.services import enrolled_course_ids, enrolled_student_ids
from hallmark.exceptions import NotFoundError, ValidationError
from hallmark.ids import canonical_id, expand_ids, id_variants, try_canonical_id
from notifications.emails import EmailKind, send_templated_email
from notifications.rendering import render_rich_text

from .activity import log_event
from .models import ActivityLog, Material
from .services import get_course
from .storage import discard_files, material_path, store_files

logger = logging.getLogger(__name__)


def create_material(lecturer_id, data: dict, files: Sequence, now: datetime | None = None) -> Material:
    lecturer = canonical_id(lecturer_id, "Lecturer ID")
    if not data.get("course_id") or not data.get("title") or not files:
        raise ValidationError("Missing required fields")
    course = get_course(data["course_id"])
    if course is None:
        raise NotFoundError("Course not found")

    now = now or timezone.now()
    stored = store_files(
        (material_path(str(course.pk), now, getattr(upload, "name", "")), upload) for upload in files
    )
    try:
        material = Material.objects.create(
            course_id=str(course.pk),
            lecturer_id=lecturer,
            title=data["title"],
            description=data.get("description") or "",
            file_urls=[file.url for file in stored],
            created_at=now,
        )
    except DatabaseError:
        discard_files(stored)
        raise
    logger.info("Material %s uploaded for course %s (%d file(s))", material.pk, course.code, len(stored))

    _broadcast_new_material(material, course)
    log_event(
        f'New Material: "{material.title}" shared with {course.label}',
        actor=lecturer,
        details={"material_id": str(material.pk), "course_id": str(course.pk)},
        level=ActivityLog.Level.SUCCESS,
    )
    return material


def _broadcast_new_material(material: Material, course: Course) -> bool:
    students = users_by_ids(enrolled_student_ids(course.pk))
    emails = [student.email for student in students.values() if student.email]
    if not emails:
        return False
    sent = send_templated_email(
        emails,
        EmailKind.NEW_MATERIAL,
        {
            "course_name": course.label,
            "material_title": material.title,
            "description_html": render_rich_text(material.description),
        },
    )
    if not sent:
        logger.warning("New material email for %s was not delivered", material.pk)
    return sent


def _with_courses(materials: list[Material]) -> list[dict]:
    courses = {
        str(course.pk): course
        for course in Course.objects.filter(
            pk__in={try_canonical_id(m.course_id) for m in materials} - {None}
        )
    }
    entries = []
    for material in materials:
        course = courses.get(try_canonical_id(material.course_id) or "")
        entries.append(
            {
                "material": material,
                "course_code": course.code if course else None,
                "course_name": course.name if course else None,
            }
        )
    return entries


def materials_for_lecturer(lecturer_id) -> list[dict]:
    """Materials uploaded by the lecturer, newest first."""
    lecturer = canonical_id(lecturer_id, "Lecturer ID")
    materials = list(Material.objects.filter(lecturer_id__in=id_variants(lecturer)).order_by("-created_at"))
    return _with_courses(materials)


def materials_for_student(student_id) -> list[dict]:
    """Materials of the student's active courses, newest first, with the lecturer name."""
    student = canonical_id(student_id, "Student ID")
    course_ids = enrolled_course_ids(student)
    if not course_ids:
        return []
    materials = list(
        Material.objects.filter(course_id__in=expand_ids(course_ids)).order_by("-created_at")
    )
    entries = _with_courses(materials)
    lecturers = users_by_ids(material.lecturer_id for material in materials)
    for entry in entries:
        lecturer = lecturers.get(try_canonical_id(entry["material"].lecturer_id) or "")
        entry["lecturer_name"] = display_name(lecturer, "Unknown Lecturer")
    return entries


def delete_material(material_id, *, actor=None) -> None:
    material = Material.objects.filter(pk=canonical_id(material_id, "Material ID")).first()
    if material is None:
        raise NotFoundError("Material not found")
    title = material.title
    material.delete()
    logger.info("Material %s deleted", material_id)
    log_event(
        f'Material "{title}" deleted',
        actor=actor or "",
        details={"material_id": str(material_id)},
        level=ActivityLog.Level.WARNING,
    )
