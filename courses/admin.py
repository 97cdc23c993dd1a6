from django.contrib import admin

from .models import Course, Enrollment


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "level", "semester", "lecturer_id", "created_at")
    list_filter = ("level", "semester")
    search_fields = ("code", "name", "lecturer_id")
    readonly_fields = ("created_at", "updated_at")


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("student_id", "course_id", "level", "is_active", "enrolled_at")
    list_filter = ("is_active", "level")
    search_fields = ("student_id", "course_id")
    readonly_fields = ("enrolled_at",)
