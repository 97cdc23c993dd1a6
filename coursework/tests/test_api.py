import shutil
import tempfile
import uuid
from datetime import timedelta
from decimal import Decimal

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from accounts.models import User
from coursework.models import ActivityLog

from .factories import (
    create_assignment,
    create_course,
    create_grade,
    create_lecturer,
    create_student,
    create_submission,
    create_user,
    enroll,
)

MEDIA_ROOT = tempfile.mkdtemp()


@override_settings(
    MEDIA_ROOT=MEDIA_ROOT,
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
)
class CourseworkApiTests(TestCase):
    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.lecturer = create_lecturer(first_name="Alan", last_name="Turing")
        self.course = create_course(lecturer=self.lecturer, code="CSC301", name="Compilers")
        self.student = create_student()
        enroll(self.student, self.course)
        self.assignment = create_assignment(
            course=self.course,
            lecturer=self.lecturer,
            deadline=timezone.now() + timedelta(days=2),
            penalty_percent=Decimal("10"),
        )

    def test_lecturer_id_is_required(self):
        resp = self.client.get(reverse("lecturer-submissions"))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"detail": "Lecturer ID is required"})

        resp = self.client.get(reverse("lecturer-submissions"), {"lecturerId": "not-an-id"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"detail": "Valid Lecturer ID is required"})

    def test_create_and_list_assignments(self):
        resp = self.client.post(
            f"{reverse('lecturer-assignments')}?lecturerId={self.lecturer.pk}",
            data={
                "course_id": str(self.course.pk),
                "title": "Parsers",
                "deadline": (timezone.now() + timedelta(days=5)).isoformat(),
                "accept_late": True,
                "penalty_percent": "5",
            },
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 201)
        payload = resp.json()["assignment"]
        self.assertEqual(payload["total_marks"], 100)
        self.assertEqual(
            payload["late_submission"],
            {"accept_late": True, "cutoff_days": 7, "penalty_percent": 5.0},
        )

        resp = self.client.get(reverse("lecturer-assignments"), {"lecturerId": str(self.lecturer.pk)})
        self.assertEqual(resp.status_code, 200)
        listed = resp.json()["assignments"]
        self.assertEqual(len(listed), 2)
        self.assertEqual({entry["course_code"] for entry in listed}, {"CSC301"})

    def test_assignment_detail_and_delete(self):
        url = reverse("lecturer-assignment-detail", args=[self.assignment.pk])
        self.assertEqual(self.client.get(url).json()["assignment"]["title"], self.assignment.title)

        resp = self.client.delete(f"{url}?lecturerId={self.lecturer.pk}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.client.get(url).status_code, 404)

        resp = self.client.get(reverse("lecturer-assignment-detail", args=["garbage"]))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Valid Assignment ID is required")

    def test_submit_then_grade_flow(self):
        submit_url = reverse("student-assignment-submit", args=[self.assignment.pk])
        resp = self.client.post(
            f"{submit_url}?studentId={self.student.pk}",
            data={"files": [SimpleUploadedFile("answer.txt", b"42")]},
        )
        self.assertEqual(resp.status_code, 201)
        submission_id = resp.json()["submission"]["id"]

        resp = self.client.post(
            f"{submit_url}?studentId={self.student.pk}",
            data={"files": [SimpleUploadedFile("again.txt", b"43")]},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"detail": "You have already submitted this assignment"})

        pending = self.client.get(
            reverse("lecturer-submissions"), {"lecturerId": str(self.lecturer.pk)}
        ).json()["submissions"]
        self.assertEqual([item["id"] for item in pending], [submission_id])
        self.assertFalse(pending[0]["is_virtual"])

        grade_url = reverse("grade-submission", args=[submission_id])
        resp = self.client.post(
            f"{grade_url}?lecturerId={self.lecturer.pk}",
            data={"score": 150},
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"detail": "Score must be between 0 and 100"})

        resp = self.client.post(
            f"{grade_url}?lecturerId={self.lecturer.pk}",
            data={"score": 88, "feedback": "Nice"},
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["grade"]["final_score"], 88)

        graded = self.client.get(
            reverse("lecturer-submissions"), {"lecturerId": str(self.lecturer.pk), "status": "graded"}
        ).json()["submissions"]
        self.assertEqual(graded[0]["status"], "graded")
        self.assertEqual(graded[0]["grade"]["final_score"], 88)

        detail = self.client.get(
            reverse("student-assignment-detail", args=[self.assignment.pk]),
            {"studentId": str(self.student.pk)},
        ).json()
        self.assertEqual(detail["assignment"]["course_code"], "CSC301")
        self.assertEqual(detail["assignment"]["lecturer_name"], "Alan Turing")
        self.assertEqual(detail["submission"]["id"], submission_id)
        self.assertEqual(detail["grade"]["score"], 88)

    def test_submit_without_files(self):
        submit_url = reverse("student-assignment-submit", args=[self.assignment.pk])
        resp = self.client.post(f"{submit_url}?studentId={self.student.pk}", data={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"detail": "No files provided"})

    def test_closed_window_message(self):
        late = create_assignment(
            course=self.course, lecturer=self.lecturer, deadline=timezone.now() - timedelta(days=9), cutoff_days=7
        )
        submit_url = reverse("student-assignment-submit", args=[late.pk])
        resp = self.client.post(
            f"{submit_url}?studentId={self.student.pk}",
            data={"files": [SimpleUploadedFile("late.txt", b"sorry")]},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"detail": "Submission window closed (7 days past deadline)"})

    def test_virtual_entry_in_listing(self):
        create_grade(
            submission_id="g1",
            assignment_id=str(self.assignment.pk),
            student_id=str(self.student.pk),
            graded_by=str(self.lecturer.pk),
            penalty_applied=Decimal("20"),
        )

        items = self.client.get(
            reverse("lecturer-submissions"), {"lecturerId": str(self.lecturer.pk), "status": "all"}
        ).json()["submissions"]

        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["id"], "g1")
        self.assertTrue(items[0]["is_virtual"])
        self.assertEqual(items[0]["status"], "graded")
        self.assertTrue(items[0]["is_late"])
        self.assertEqual(items[0]["hours_late"], 24)
        self.assertEqual(items[0]["file_urls"], [])

    def test_invalid_status_filter(self):
        resp = self.client.get(
            reverse("lecturer-submissions"), {"lecturerId": str(self.lecturer.pk), "status": "weird"}
        )
        self.assertEqual(resp.status_code, 400)

    def test_stats_endpoints(self):
        create_submission(assignment=self.assignment, student=self.student)

        lecturer_stats = self.client.get(reverse("lecturer-stats"), {"lecturerId": str(self.lecturer.pk)}).json()
        self.assertEqual(
            lecturer_stats,
            {"total_assignments": 1, "pending_submissions": 1, "completed_submissions": 0},
        )

        student_stats = self.client.get(reverse("student-stats"), {"studentId": str(self.student.pk)}).json()
        self.assertEqual(student_stats, {"active": 0, "submitted": 1, "graded": 0})

    def test_student_assignment_list(self):
        resp = self.client.get(reverse("student-assignments"), {"studentId": str(self.student.pk)})
        self.assertEqual(resp.status_code, 200)
        assignments = resp.json()["assignments"]
        self.assertEqual(len(assignments), 1)
        self.assertTrue(assignments[0]["is_open"])
        self.assertIsNone(assignments[0]["submission"])

    def test_session_user_wins_over_query_parameter(self):
        create_submission(assignment=self.assignment, student=self.student)
        self.client.force_login(self.lecturer)

        resp = self.client.get(reverse("lecturer-submissions"), {"lecturerId": str(uuid.uuid4())})

        self.assertEqual(len(resp.json()["submissions"]), 1)


class CronReminderApiTests(TestCase):
    @override_settings(CRON_SECRET="s3cret")
    def test_secret_is_enforced(self):
        self.assertEqual(self.client.get(reverse("cron-reminders")).status_code, 401)
        resp = self.client.get(reverse("cron-reminders"), HTTP_AUTHORIZATION="Bearer wrong")
        self.assertEqual(resp.status_code, 401)

        resp = self.client.get(reverse("cron-reminders"), HTTP_AUTHORIZATION="Bearer s3cret")
        self.assertEqual(resp.status_code, 200)

    @override_settings(CRON_SECRET="")
    def test_no_upcoming_deadlines(self):
        resp = self.client.get(reverse("cron-reminders"))
        self.assertEqual(resp.json(), {"message": "No upcoming deadlines in the next 24 hours"})

    @override_settings(CRON_SECRET="", EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
    def test_report(self):
        course = create_course(lecturer=create_lecturer())
        enroll(create_student(), course)
        create_assignment(course=course, title="Lab 3", deadline=timezone.now() + timedelta(hours=2))

        resp = self.client.get(reverse("cron-reminders"))

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["details"], [{"assignment_title": "Lab 3", "reminded_count": 1}])
        self.assertEqual(resp.json()["failures"], 0)


class ActivityLogApiTests(TestCase):
    def test_admin_only(self):
        ActivityLog.objects.create(action="Something happened")
        self.assertEqual(self.client.get(reverse("admin-logs")).status_code, 403)

        admin = create_user(role=User.Role.ADMIN, is_staff=True)
        self.client.force_login(admin)
        resp = self.client.get(reverse("admin-logs"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["logs"][0]["action"], "Something happened")

