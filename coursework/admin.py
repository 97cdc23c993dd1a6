from django.contrib import admin

from .models import ActivityLog, Assignment, Grade, Material, Submission


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ("title", "course_id", "deadline", "total_marks", "accept_late", "created_by")
    list_filter = ("accept_late",)
    search_fields = ("title", "course_id", "created_by")
    readonly_fields = ("created_at",)


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ("assignment_id", "student_id", "submitted_at", "is_late", "hours_late", "status")
    list_filter = ("status", "is_late")
    search_fields = ("assignment_id", "student_id")


@admin.register(Grade)
class GradeAdmin(admin.ModelAdmin):
    list_display = ("submission_id", "student_id", "score", "penalty_applied", "final_score", "graded_at")
    search_fields = ("submission_id", "student_id", "graded_by")

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "level", "action", "actor")
    list_filter = ("level",)
    search_fields = ("action", "actor")
    readonly_fields = ("timestamp",)


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    list_display = ("title", "course_id", "lecturer_id", "created_at")
    search_fields = ("title", "course_id", "lecturer_id")
