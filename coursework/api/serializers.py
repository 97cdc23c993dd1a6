from decimal import Decimal

from rest_framework import serializers

from ..models import ActivityLog, Assignment, Grade, Material, Submission


class AssignmentSerializer(serializers.ModelSerializer):
    late_submission = serializers.SerializerMethodField()

    class Meta:
        model = Assignment
        fields = [
            "id",
            "course_id",
            "title",
            "description",
            "deadline",
            "total_marks",
            "created_by",
            "late_submission",
            "file_url",
            "created_at",
        ]
        read_only_fields = fields

    def get_late_submission(self, obj):
        return obj.late_policy.as_dict()


class AssignmentCreateSerializer(serializers.Serializer):
    course_id = serializers.CharField(max_length=64)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    deadline = serializers.DateTimeField()
    total_marks = serializers.IntegerField(min_value=1, required=False, default=100)
    accept_late = serializers.BooleanField(required=False, default=False)
    cutoff_days = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=7)
    penalty_percent = serializers.DecimalField(
        max_digits=6,
        decimal_places=2,
        min_value=Decimal("0"),
        required=False,
        default=Decimal("0"),
    )
    file_url = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class LecturerAssignmentSerializer(serializers.Serializer):
    def to_representation(self, instance):
        data = AssignmentSerializer(instance["assignment"]).data
        data["course_code"] = instance["course_code"]
        return data


class SubmissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Submission
        fields = [
            "id",
            "assignment_id",
            "student_id",
            "file_urls",
            "submitted_at",
            "is_late",
            "hours_late",
            "status",
        ]
        read_only_fields = fields


class GradeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Grade
        fields = [
            "id",
            "submission_id",
            "assignment_id",
            "student_id",
            "score",
            "feedback",
            "graded_by",
            "penalty_applied",
            "final_score",
            "graded_at",
        ]
        read_only_fields = fields


class GradeRequestSerializer(serializers.Serializer):
    score = serializers.DecimalField(max_digits=8, decimal_places=2)
    feedback = serializers.CharField(required=False, allow_blank=True, default="")


class StudentAssignmentDetailSerializer(serializers.Serializer):
    """Serialises ``services.student_assignment_detail``."""

    def to_representation(self, instance):
        assignment = AssignmentSerializer(instance["assignment"]).data
        assignment.update(
            {
                "course_code": instance["course_code"],
                "course_name": instance["course_name"],
                "lecturer_name": instance["lecturer_name"],
                "is_late_allowed": instance["is_late_allowed"],
                "cutoff_days": instance["cutoff_days"],
                "penalty_percent": instance["penalty_percent"],
            }
        )
        submission = instance["submission"]
        grade = instance["grade"]
        return {
            "assignment": assignment,
            "submission": SubmissionSerializer(submission).data if submission else None,
            "grade": GradeSerializer(grade).data if grade else None,
        }


class StudentAssignmentSerializer(serializers.Serializer):
    def to_representation(self, instance):
        data = AssignmentSerializer(instance["assignment"]).data
        submission = instance["submission"]
        data.update(
            {
                "course_code": instance["course_code"],
                "course_name": instance["course_name"],
                "is_open": instance["is_open"],
                "submission": SubmissionSerializer(submission).data if submission else None,
            }
        )
        return data


class ActivityLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ActivityLog
        fields = ["id", "action", "actor", "details", "level", "timestamp"]
        read_only_fields = fields


class MaterialSerializer(serializers.ModelSerializer):
    class Meta:
        model = Material
        fields = ["id", "course_id", "lecturer_id", "title", "description", "file_urls", "created_at"]
        read_only_fields = fields


class MaterialCreateSerializer(serializers.Serializer):
    course_id = serializers.CharField(max_length=64)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class MaterialEntrySerializer(serializers.Serializer):
    """Serialises the entries of ``materials_for_lecturer`` and ``materials_for_student``."""

    def to_representation(self, instance):
        data = MaterialSerializer(instance["material"]).data
        data["course_code"] = instance["course_code"]
        data["course_name"] = instance["course_name"]
        if "lecturer_name" in instance:
            data["lecturer_name"] = instance["lecturer_name"]
        return data
