"""
URL configuration for the hallmark project.

The JSON API lives under ``/api/``; each app contributes its own ``api/urls.py``.
"""
import os
from django.contrib import admin
from django.urls import include, path
from django.conf import settings
from django.conf.urls.static import static

from .views import HealthView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health/', HealthView.as_view(), name='health'),

    path('', include('accounts.api.urls')),
    path('', include('courses.api.urls')),
    path('', include('coursework.api.urls')),
]

# Serve uploaded media locally during development when S3 is not configured
if settings.DEBUG and not os.environ.get("AWS_STORAGE_BUCKET_NAME"):
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
