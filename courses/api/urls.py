from django.urls import path

from .views import (
    LecturerCourseListView,
    OnboardingCourseListView,
    OnboardingEnrollView,
    StudentCourseListView,
)

urlpatterns = [
    path("api/onboarding/courses/", OnboardingCourseListView.as_view(), name="onboarding-courses"),
    path("api/onboarding/enroll/", OnboardingEnrollView.as_view(), name="onboarding-enroll"),
    path("api/lecturer/courses/", LecturerCourseListView.as_view(), name="lecturer-courses"),
    path("api/student/courses/", StudentCourseListView.as_view(), name="student-courses"),
]
