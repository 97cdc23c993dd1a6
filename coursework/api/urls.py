from django.urls import path

from .views import (
    AdminActivityLogView,
    CronReminderView,
    GradeSubmissionView,
    LecturerAssignmentDetailView,
    LecturerAssignmentListCreateView,
    LecturerMaterialDetailView,
    LecturerMaterialListCreateView,
    LecturerStatsView,
    LecturerSubmissionListView,
    StudentAssignmentDetailView,
    StudentAssignmentListView,
    StudentMaterialListView,
    StudentStatsView,
    StudentSubmitView,
)

urlpatterns = [
    path(
        "api/lecturer/assignments/",
        LecturerAssignmentListCreateView.as_view(),
        name="lecturer-assignments",
    ),
    path(
        "api/lecturer/assignments/<str:assignment_id>/",
        LecturerAssignmentDetailView.as_view(),
        name="lecturer-assignment-detail",
    ),
    path("api/lecturer/submissions/", LecturerSubmissionListView.as_view(), name="lecturer-submissions"),
    path(
        "api/lecturer/submissions/<str:submission_id>/grade/",
        GradeSubmissionView.as_view(),
        name="grade-submission",
    ),
    path("api/lecturer/materials/", LecturerMaterialListCreateView.as_view(), name="lecturer-materials"),
    path(
        "api/lecturer/materials/<str:material_id>/",
        LecturerMaterialDetailView.as_view(),
        name="lecturer-material-detail",
    ),
    path("api/lecturer/stats/", LecturerStatsView.as_view(), name="lecturer-stats"),
    path("api/student/assignments/", StudentAssignmentListView.as_view(), name="student-assignments"),
    path(
        "api/student/assignments/<str:assignment_id>/",
        StudentAssignmentDetailView.as_view(),
        name="student-assignment-detail",
    ),
    path(
        "api/student/assignments/<str:assignment_id>/submit/",
        StudentSubmitView.as_view(),
        name="student-assignment-submit",
    ),
    path("api/student/materials/", StudentMaterialListView.as_view(), name="student-materials"),
    path("api/student/stats/", StudentStatsView.as_view(), name="student-stats"),
    path("api/cron/reminders/", CronReminderView.as_view(), name="cron-reminders"),
    path("api/admin/logs/", AdminActivityLogView.as_view(), name="admin-logs"),
]
