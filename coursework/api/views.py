import hmac

from django.conf import settings
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from hallmark.api import actor_id_from_request
from hallmark.exceptions import ValidationError

from .. import materials, services
from ..activity import recent_events
from ..gradebook import build_gradebook
from ..reminders import scan_deadline_reminders
from .serializers import (
    ActivityLogSerializer,
    AssignmentCreateSerializer,
    AssignmentSerializer,
    GradeRequestSerializer,
    GradeSerializer,
    LecturerAssignmentSerializer,
    MaterialCreateSerializer,
    MaterialEntrySerializer,
    MaterialSerializer,
    StudentAssignmentDetailSerializer,
    StudentAssignmentSerializer,
    SubmissionSerializer,
)


class LecturerAssignmentListCreateView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        lecturer_id = actor_id_from_request(request, "lecturerId")
        entries = services.assignments_for_lecturer(lecturer_id)
        return Response({"assignments": LecturerAssignmentSerializer(entries, many=True).data})

    def post(self, request, *args, **kwargs):
        lecturer_id = actor_id_from_request(request, "lecturerId")
        serializer = AssignmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = services.create_assignment(lecturer_id, serializer.validated_data)
        return Response(
            {"assignment": AssignmentSerializer(assignment).data},
            status=status.HTTP_201_CREATED,
        )


class LecturerAssignmentDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, assignment_id: str, *args, **kwargs):
        assignment = services.get_assignment(assignment_id)
        return Response({"assignment": AssignmentSerializer(assignment).data})

    def delete(self, request, assignment_id: str, *args, **kwargs):
        actor = request.user.pk if request.user.is_authenticated else request.query_params.get("lecturerId")
        services.delete_assignment(assignment_id, actor=actor)
        return Response({"message": "Assignment deleted"})


class LecturerSubmissionListView(APIView):
    """Gradebook of the lecturer, filtered by ``status`` (pending, graded or all)."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        lecturer_id = actor_id_from_request(request, "lecturerId")
        items = build_gradebook(lecturer_id, request.query_params.get("status") or "pending")
        return Response({"submissions": [item.as_dict() for item in items]})


class GradeSubmissionView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request, submission_id: str, *args, **kwargs):
        lecturer_id = actor_id_from_request(request, "lecturerId")
        serializer = GradeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grade = services.grade_submission(
            submission_id,
            lecturer_id,
            serializer.validated_data["score"],
            serializer.validated_data["feedback"],
        )
        return Response({"grade": GradeSerializer(grade).data}, status=status.HTTP_201_CREATED)


class LecturerStatsView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        lecturer_id = actor_id_from_request(request, "lecturerId")
        return Response(services.lecturer_stats(lecturer_id))


class StudentAssignmentListView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        student_id = actor_id_from_request(request, "studentId")
        entries = services.assignments_for_student(student_id)
        return Response({"assignments": StudentAssignmentSerializer(entries, many=True).data})


class StudentAssignmentDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, assignment_id: str, *args, **kwargs):
        student_id = actor_id_from_request(request, "studentId")
        detail = services.student_assignment_detail(assignment_id, student_id)
        return Response(StudentAssignmentDetailSerializer(detail).data)


class StudentSubmitView(APIView):
    """Multipart upload of one or more ``files`` for an assignment."""

    permission_classes = [permissions.AllowAny]

    def post(self, request, assignment_id: str, *args, **kwargs):
        student_id = actor_id_from_request(request, "studentId")
        files = request.FILES.getlist("files")
        submission = services.submit_assignment(assignment_id, student_id, files)
        return Response(
            {
                "message": "Assignment submitted successfully",
                "submission": SubmissionSerializer(submission).data,
            },
            status=status.HTTP_201_CREATED,
        )


class StudentStatsView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        student_id = actor_id_from_request(request, "studentId")
        return Response(services.student_stats(student_id))


class LecturerMaterialListCreateView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        lecturer_id = actor_id_from_request(request, "lecturerId")
        entries = materials.materials_for_lecturer(lecturer_id)
        return Response({"materials": MaterialEntrySerializer(entries, many=True).data})

    def post(self, request, *args, **kwargs):
        """Multipart upload: ``course_id``, ``title``, optional ``description`` and ``files``."""
        lecturer_id = actor_id_from_request(request, "lecturerId")
        serializer = MaterialCreateSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError("Missing required fields")
        material = materials.create_material(
            lecturer_id, serializer.validated_data, request.FILES.getlist("files")
        )
        return Response(
            {"success": True, "material": MaterialSerializer(material).data},
            status=status.HTTP_201_CREATED,
        )


class LecturerMaterialDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def delete(self, request, material_id: str, *args, **kwargs):
        actor = request.user.pk if request.user.is_authenticated else request.query_params.get("lecturerId")
        materials.delete_material(material_id, actor=actor)
        return Response({"success": True, "message": "Material deleted"})


class StudentMaterialListView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        student_id = actor_id_from_request(request, "studentId")
        entries = materials.materials_for_student(student_id)
        return Response({"materials": MaterialEntrySerializer(entries, many=True).data})


class CronReminderView(APIView):
    """Entry point for an external scheduler; guarded by ``CRON_SECRET`` when set."""

    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        secret = settings.CRON_SECRET
        if secret:
            header = request.headers.get("Authorization", "")
            if not hmac.compare_digest(header, f"Bearer {secret}"):
                return Response({"detail": "Unauthorized"}, status=status.HTTP_401_UNAUTHORIZED)

        scan = scan_deadline_reminders()
        if not scan.checked:
            return Response({"message": "No upcoming deadlines in the next 24 hours"})
        return Response(
            {
                "success": True,
                "message": "Reminder job completed",
                "details": [report.as_dict() for report in scan.reports],
                "failures": scan.failures,
            }
        )


class AdminActivityLogView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request, *args, **kwargs):
        try:
            limit = min(max(int(request.query_params.get("limit", 100)), 1), 500)
        except ValueError:
            limit = 100
        return Response({"logs": ActivityLogSerializer(recent_events(limit), many=True).data})
