"""WSGI config for the hallmark project."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hallmark.settings")

application = get_wsgi_application()
