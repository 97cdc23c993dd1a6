import shutil
import tempfile
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError
from django.test import TestCase, override_settings
from django.utils import timezone

from coursework import services
from coursework.models import ActivityLog, Submission
from coursework.storage import submission_path
from hallmark.exceptions import (
    DeadlineClosedError,
    DeadlinePassedError,
    DependencyFailure,
    DuplicateSubmissionError,
    NotFoundError,
    ValidationError,
)

from .factories import create_assignment, create_student, create_submission

MEDIA_ROOT = tempfile.mkdtemp()


def upload(name="report.pdf", content=b"%PDF-1.4 answer"):
    return SimpleUploadedFile(name, content, content_type="application/pdf")


@override_settings(
    MEDIA_ROOT=MEDIA_ROOT,
    STORAGES={
        "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
        "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
    },
)
class SubmitAssignmentTests(TestCase):
    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.student = create_student()
        self.deadline = timezone.now() + timedelta(days=1)
        self.assignment = create_assignment(deadline=self.deadline)

    def test_on_time_submission_is_stored(self):
        submission = services.submit_assignment(
            self.assignment.pk, self.student.pk, [upload(), upload("notes.txt", b"notes")]
        )

        self.assertEqual(submission.status, "submitted")
        self.assertFalse(submission.is_late)
        self.assertEqual(submission.hours_late, 0)
        self.assertEqual(len(submission.file_urls), 2)
        self.assertIn(
            f"assignments/{self.assignment.pk}/{self.student.pk}/report",
            submission.file_urls[0],
        )
        self.assertTrue(ActivityLog.objects.filter(action__startswith="Submission received").exists())

    def test_late_submission_records_lateness(self):
        now = self.deadline + timedelta(hours=5, minutes=30)

        submission = services.submit_assignment(self.assignment.pk, self.student.pk, [upload()], now=now)

        self.assertTrue(submission.is_late)
        self.assertEqual(submission.hours_late, 5)
        self.assertEqual(submission.submitted_at, now)

    def test_second_submission_is_rejected_regardless_of_files(self):
        services.submit_assignment(self.assignment.pk, self.student.pk, [upload()])

        with self.assertRaises(DuplicateSubmissionError):
            services.submit_assignment(
                self.assignment.pk, self.student.pk, [upload("other.zip", b"completely different")]
            )
        self.assertEqual(Submission.objects.count(), 1)

    def test_legacy_submission_blocks_resubmission(self):
        Submission.objects.create(
            assignment_id=self.assignment.pk.hex,
            student_id=self.student.pk.hex,
            submitted_at=timezone.now(),
        )

        with self.assertRaises(DuplicateSubmissionError):
            services.submit_assignment(self.assignment.pk.hex, self.student.pk, [upload()])

    def test_constraint_violation_is_reported_as_duplicate(self):
        with mock.patch.object(Submission.objects, "create", side_effect=IntegrityError("unique")):
            with self.assertRaises(DuplicateSubmissionError):
                services.submit_assignment(self.assignment.pk, self.student.pk, [upload()])

    def test_files_of_a_losing_concurrent_submission_are_removed(self):
        path = submission_path(str(self.assignment.pk), str(self.student.pk), "report.pdf")

        with mock.patch.object(Submission.objects, "create", side_effect=IntegrityError("unique")):
            with self.assertRaises(DuplicateSubmissionError):
                services.submit_assignment(self.assignment.pk, self.student.pk, [upload()])

        self.assertFalse(default_storage.exists(path))

    def test_partial_upload_failure_removes_saved_files(self):
        with mock.patch("coursework.storage.default_storage") as storage:
            storage.save.side_effect = ["assignments/a/s/report.pdf", OSError("disk full")]
            storage.url.return_value = "/media/assignments/a/s/report.pdf"
            with self.assertRaises(DependencyFailure):
                services.submit_assignment(
                    self.assignment.pk, self.student.pk, [upload(), upload("notes.txt", b"notes")]
                )

        storage.delete.assert_called_once_with("assignments/a/s/report.pdf")
        self.assertFalse(Submission.objects.exists())

    def test_past_deadline_without_late_policy(self):
        assignment = create_assignment(deadline=timezone.now() - timedelta(hours=1), accept_late=False)

        with self.assertRaisesMessage(DeadlinePassedError, "late submissions are not accepted"):
            services.submit_assignment(assignment.pk, self.student.pk, [upload()])

    def test_past_cutoff_is_closed(self):
        assignment = create_assignment(deadline=timezone.now() - timedelta(days=8), cutoff_days=7)

        with self.assertRaisesMessage(DeadlineClosedError, "Submission window closed (7 days past deadline)"):
            services.submit_assignment(assignment.pk, self.student.pk, [upload()])
        self.assertFalse(Submission.objects.exists())

    def test_invalid_ids_and_missing_files(self):
        with self.assertRaisesMessage(ValidationError, "Valid Assignment ID is required"):
            services.submit_assignment("nope", self.student.pk, [upload()])
        with self.assertRaisesMessage(ValidationError, "Valid Student ID is required"):
            services.submit_assignment(self.assignment.pk, "nope", [upload()])
        with self.assertRaisesMessage(ValidationError, "No files provided"):
            services.submit_assignment(self.assignment.pk, self.student.pk, [])

    def test_unknown_assignment(self):
        with self.assertRaises(NotFoundError):
            services.submit_assignment("00000000-0000-0000-0000-000000000000", self.student.pk, [upload()])

    def test_storage_failure_is_a_dependency_failure(self):
        with mock.patch("coursework.storage.default_storage") as storage:
            storage.save.side_effect = OSError("disk full")
            with self.assertRaises(DependencyFailure):
                services.submit_assignment(self.assignment.pk, self.student.pk, [upload()])
        self.assertFalse(Submission.objects.exists())


class StudentViewTests(TestCase):
    def setUp(self):
        self.student = create_student()

    def test_detail_applies_default_cutoff(self):
        assignment = create_assignment(cutoff_days=None, penalty_percent=Decimal("5"))

        detail = services.student_assignment_detail(assignment.pk, self.student.pk)

        self.assertEqual(detail["cutoff_days"], 7)
        self.assertTrue(detail["is_late_allowed"])
        self.assertEqual(detail["penalty_percent"], Decimal("5"))
        self.assertIsNone(detail["submission"])
        self.assertIsNone(detail["grade"])

    def test_detail_includes_own_submission(self):
        assignment = create_assignment()
        submission = create_submission(assignment=assignment, student=self.student)
        create_submission(assignment=assignment, student=create_student())

        detail = services.student_assignment_detail(assignment.pk, self.student.pk)

        self.assertEqual(detail["submission"].pk, submission.pk)
