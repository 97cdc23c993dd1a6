"""Blob storage for submitted files and course materials.

Files go through Django's ``default_storage`` which is the local media folder
in development and an S3 bucket when ``USE_S3_MEDIA`` is enabled.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Iterable, NamedTuple

from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename

from hallmark.exceptions import DependencyFailure

logger = logging.getLogger(__name__)


class StoredFile(NamedTuple):
    name: str
    url: str


def _safe_name(filename: str) -> str:
    name = os.path.basename(filename or "").strip(". ") or "file"
    return get_valid_filename(name)


def submission_path(assignment_id: str, student_id: str, filename: str) -> str:
    return f"assignments/{assignment_id}/{student_id}/{_safe_name(filename)}"


def material_path(course_id: str, uploaded_at: datetime, filename: str) -> str:
    stamp = int(uploaded_at.timestamp() * 1000)
    return f"materials/{course_id}/{stamp}/{_safe_name(filename)}"


def store_file(path: str, file) -> StoredFile:
    """Save ``file`` under ``path`` and return its storage name and public URL."""
    try:
        stored_name = default_storage.save(path, file)
        url = default_storage.url(stored_name)
    except Exception as exc:
        logger.exception("Failed to store file at %s", path)
        raise DependencyFailure("Failed to upload file") from exc
    logger.info("Stored file %s", stored_name)
    return StoredFile(stored_name, url)


def store_files(paths_and_files: Iterable[tuple[str, object]]) -> list[StoredFile]:
    """Store several files; if one fails, the ones already saved are removed."""
    stored: list[StoredFile] = []
    try:
        for path, file in paths_and_files:
            stored.append(store_file(path, file))
    except DependencyFailure:
        discard_files(stored)
        raise
    return stored


def discard_files(files: Iterable[StoredFile]) -> None:
    """Delete stored files that ended up unused.  Failures are only logged."""
    for stored in files:
        try:
            default_storage.delete(stored.name)
        except Exception:
            logger.exception("Failed to delete orphaned file %s", stored.name)
        else:
            logger.info("Deleted orphaned file %s", stored.name)
