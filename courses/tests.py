import uuid

from django.test import TestCase
from django.urls import reverse

from courses import services
from courses.models import Course, Enrollment
from coursework.tests.factories import (
    create_assignment,
    create_course,
    create_lecturer,
    create_student,
    enroll,
)
from hallmark.exceptions import NotFoundError, ValidationError


class EnrollStudentTests(TestCase):
    def setUp(self):
        self.student = create_student(level=200)
        self.course_a = create_course(code="CSC201")
        self.course_b = create_course(code="CSC202")
        self.course_c = create_course(code="CSC203")

    def enrolled_course_ids(self):
        return sorted(Enrollment.objects.filter(student_id=str(self.student.pk)).values_list("course_id", flat=True))

    def test_overlapping_requests_enroll_each_course_once(self):
        first = services.enroll_student(self.student.pk, [self.course_a.pk, self.course_b.pk])
        second = services.enroll_student(self.student.pk, [str(self.course_b.pk), str(self.course_c.pk)])

        self.assertEqual(len(first), 2)
        self.assertEqual([e.course_id for e in second], [str(self.course_c.pk)])
        self.assertEqual(
            self.enrolled_course_ids(),
            sorted(str(course.pk) for course in (self.course_a, self.course_b, self.course_c)),
        )

    def test_nothing_new_returns_empty_and_changes_nothing(self):
        services.enroll_student(self.student.pk, [self.course_a.pk])

        self.assertEqual(services.enroll_student(self.student.pk, [self.course_a.pk]), [])
        self.assertEqual(Enrollment.objects.count(), 1)

    def test_legacy_enrollment_is_recognised(self):
        Enrollment.objects.create(student_id=self.student.pk.hex, course_id=self.course_a.pk.hex)

        created = services.enroll_student(self.student.pk, [self.course_a.pk, self.course_b.pk])

        self.assertEqual([e.course_id for e in created], [str(self.course_b.pk)])
        self.assertEqual(Enrollment.objects.count(), 2)

    def test_reenrolling_reactivates_a_deactivated_enrollment(self):
        services.enroll_student(self.student.pk, [self.course_a.pk, self.course_b.pk])
        services.deactivate_enrollments(self.student.pk, [self.course_a.pk])
        self.assertEqual(services.enrolled_course_ids(self.student.pk), [str(self.course_b.pk)])

        returned = services.enroll_student(self.student.pk, [self.course_a.pk, self.course_b.pk])

        self.assertEqual([e.course_id for e in returned], [str(self.course_a.pk)])
        self.assertTrue(returned[0].is_active)
        self.assertEqual(
            sorted(services.enrolled_course_ids(self.student.pk)),
            sorted([str(self.course_a.pk), str(self.course_b.pk)]),
        )
        self.assertEqual(Enrollment.objects.count(), 2)

    def test_legacy_inactive_enrollment_is_reactivated_in_place(self):
        Enrollment.objects.create(
            student_id=self.student.pk.hex, course_id=self.course_a.pk.hex, is_active=False
        )

        returned = services.enroll_student(self.student.pk, [self.course_a.pk])

        self.assertEqual(len(returned), 1)
        self.assertEqual(Enrollment.objects.count(), 1)
        self.assertEqual(services.enrolled_course_ids(self.student.pk), [str(self.course_a.pk)])

    def test_level_snapshot_is_taken_from_student(self):
        created = services.enroll_student(self.student.pk, [self.course_a.pk])
        self.assertEqual(created[0].level, 200)

    def test_duplicate_ids_in_one_request(self):
        created = services.enroll_student(self.student.pk, [self.course_a.pk, self.course_a.pk.hex])
        self.assertEqual(len(created), 1)

    def test_unknown_course(self):
        with self.assertRaises(NotFoundError):
            services.enroll_student(self.student.pk, [self.course_a.pk, uuid.uuid4()])
        self.assertFalse(Enrollment.objects.exists())

    def test_invalid_ids(self):
        with self.assertRaisesMessage(ValidationError, "Valid Student ID is required"):
            services.enroll_student("bad", [self.course_a.pk])
        with self.assertRaisesMessage(ValidationError, "Valid Course ID is required"):
            services.enroll_student(self.student.pk, ["bad"])
        with self.assertRaises(ValidationError):
            services.enroll_student(self.student.pk, [])


class CourseQueryTests(TestCase):
    def test_courses_for_lecturer_matches_both_id_forms(self):
        lecturer = create_lecturer()
        create_course(lecturer=lecturer, code="PHY101")
        create_course(lecturer_id=lecturer.pk.hex, code="PHY102")
        create_course(lecturer=create_lecturer(), code="PHY103")

        codes = [course.code for course in services.courses_for_lecturer(lecturer.pk)]

        self.assertEqual(codes, ["PHY101", "PHY102"])

    def test_courses_for_student_counts_assignments(self):
        lecturer = create_lecturer(first_name="Marie", last_name="Curie")
        course = create_course(lecturer=lecturer, code="CHM101")
        idle = create_course(code="CHM102")
        dropped = create_course(code="CHM103")
        student = create_student()
        enroll(student, course)
        enroll(student, idle)
        enroll(student, dropped, is_active=False)
        create_assignment(course=course, lecturer=lecturer)
        create_assignment(course=course, lecturer=lecturer)

        entries = services.courses_for_student(student.pk)

        self.assertEqual([entry["course"].code for entry in entries], ["CHM101", "CHM102"])
        self.assertEqual(entries[0]["lecturer_name"], "Marie Curie")
        self.assertEqual(entries[0]["assignments_count"], 2)
        self.assertEqual(entries[1]["lecturer_name"], "Unassigned")
        self.assertEqual(entries[1]["assignments_count"], 0)

    def test_deactivated_enrollment_drops_out_of_student_views(self):
        student = create_student()
        kept = create_course(code="ENG101")
        dropped = create_course(code="ENG102")
        enroll(student, kept)
        Enrollment.objects.create(student_id=student.pk.hex, course_id=dropped.pk.hex)

        updated = services.deactivate_enrollments(student.pk, [dropped.pk])

        self.assertEqual(updated, 1)
        self.assertEqual(services.enrolled_course_ids(student.pk), [str(kept.pk)])
        self.assertEqual(services.enrolled_student_ids(dropped.pk), [])
        self.assertEqual(len(services.enrolled_course_ids(student.pk, active_only=False)), 2)

    def test_catalogue_is_ordered_by_code_and_codes_are_upper_case(self):
        create_course(code="zoo101")
        create_course(code="bio101")

        self.assertEqual([c.code for c in services.course_catalogue()], ["BIO101", "ZOO101"])


class OnboardingApiTests(TestCase):
    def setUp(self):
        self.student = create_student(level=100)
        self.course_a = create_course(code="GST101", level=100)
        self.course_b = create_course(code="GST102", level=100)
        self.course_c = create_course(code="GST201", level=200)

    def enroll_request(self, course_ids):
        return self.client.post(
            f"{reverse('onboarding-enroll')}?studentId={self.student.pk}",
            data={"courseIds": [str(pk) for pk in course_ids]},
            content_type="application/json",
        )

    def test_enroll_twice_with_overlap(self):
        resp = self.enroll_request([self.course_a.pk, self.course_b.pk])
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(len(resp.json()["enrollments"]), 2)

        resp = self.enroll_request([self.course_b.pk, self.course_c.pk])
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(len(resp.json()["enrollments"]), 1)

        self.assertEqual(Enrollment.objects.filter(student_id=str(self.student.pk)).count(), 3)

    def test_already_enrolled_in_everything(self):
        self.enroll_request([self.course_a.pk])

        resp = self.enroll_request([self.course_a.pk])

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"detail": "You are already enrolled in all selected courses"})
        self.assertEqual(Enrollment.objects.count(), 1)

    def test_rejoining_a_dropped_course(self):
        self.enroll_request([self.course_a.pk])
        services.deactivate_enrollments(self.student.pk, [self.course_a.pk])

        resp = self.enroll_request([self.course_a.pk])

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(len(resp.json()["enrollments"]), 1)
        self.assertTrue(Enrollment.objects.get().is_active)

    def test_student_id_required(self):
        resp = self.client.post(
            reverse("onboarding-enroll"),
            data={"courseIds": [str(self.course_a.pk)]},
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"detail": "Student ID is required"})

    def test_catalogue_filtered_by_level(self):
        resp = self.client.get(reverse("onboarding-courses"), {"level": "100"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual([c["code"] for c in resp.json()["courses"]], ["GST101", "GST102"])

    def test_student_and_lecturer_course_lists(self):
        self.enroll_request([self.course_a.pk])
        lecturer = create_lecturer()
        Course.objects.filter(pk=self.course_a.pk).update(lecturer_id=str(lecturer.pk))

        student_courses = self.client.get(reverse("student-courses"), {"studentId": str(self.student.pk)})
        lecturer_courses = self.client.get(reverse("lecturer-courses"), {"lecturerId": str(lecturer.pk)})

        self.assertEqual([c["code"] for c in student_courses.json()["courses"]], ["GST101"])
        self.assertEqual([c["code"] for c in lecturer_courses.json()["courses"]], ["GST101"])
