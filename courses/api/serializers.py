from rest_framework import serializers

from ..models import Course, Enrollment


class CourseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Course
        fields = ["id", "code", "name", "description", "level", "lecturer_id", "semester", "created_at"]
        read_only_fields = fields


class StudentCourseSerializer(serializers.Serializer):
    """Serialises the entries returned by ``services.courses_for_student``."""

    def to_representation(self, instance):
        data = CourseSerializer(instance["course"]).data
        data["lecturer_name"] = instance["lecturer_name"]
        data["assignments_count"] = instance["assignments_count"]
        return data


class EnrollmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Enrollment
        fields = ["id", "student_id", "course_id", "level", "enrolled_at", "is_active"]
        read_only_fields = fields


class EnrollRequestSerializer(serializers.Serializer):
    courseIds = serializers.ListField(
        child=serializers.CharField(max_length=64),
        allow_empty=False,
        error_messages={"empty": "At least one course must be selected"},
    )
