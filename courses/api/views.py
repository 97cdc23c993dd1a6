from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.services import get_user
from hallmark.api import actor_id_from_request
from hallmark.exceptions import NotFoundError, ValidationError

from .. import services
from .serializers import (
    CourseSerializer,
    EnrollmentSerializer,
    EnrollRequestSerializer,
    StudentCourseSerializer,
)


class OnboardingCourseListView(APIView):
    """Course catalogue offered to a student choosing their courses."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        courses = services.course_catalogue()
        level = request.query_params.get("level")
        student_level = None
        if request.user.is_authenticated:
            student_level = request.user.level
        if level:
            try:
                level = int(level)
            except ValueError as exc:
                raise ValidationError("Level must be a number") from exc
            courses = [course for course in courses if course.level == level]
        return Response(
            {
                "courses": CourseSerializer(courses, many=True).data,
                "studentLevel": student_level,
            }
        )


class OnboardingEnrollView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        student_id = actor_id_from_request(request, "studentId")
        serializer = EnrollRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if get_user(student_id) is None:
            raise NotFoundError("Student not found")

        created = services.enroll_student(student_id, serializer.validated_data["courseIds"])
        if not created:
            raise ValidationError("You are already enrolled in all selected courses")
        return Response(
            {
                "message": f"Successfully enrolled in {len(created)} course(s)",
                "enrollments": EnrollmentSerializer(created, many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )


class LecturerCourseListView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        lecturer_id = actor_id_from_request(request, "lecturerId")
        courses = services.courses_for_lecturer(lecturer_id)
        return Response({"courses": CourseSerializer(courses, many=True).data})


class StudentCourseListView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        student_id = actor_id_from_request(request, "studentId")
        entries = services.courses_for_student(student_id)
        return Response({"courses": StudentCourseSerializer(entries, many=True).data})
