from django.urls import path

from .views import AdminUserDetailView, AdminUserListCreateView

urlpatterns = [
    path("api/admin/users/", AdminUserListCreateView.as_view(), name="admin-user-list"),
    path("api/admin/users/<uuid:pk>/", AdminUserDetailView.as_view(), name="admin-user-detail"),
]
