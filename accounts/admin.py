from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class HallmarkUserAdmin(UserAdmin):
    list_display = ("email", "first_name", "last_name", "role", "identifier", "level", "is_password_set")
    list_filter = ("role", "level", "is_password_set", "is_staff")
    search_fields = ("email", "first_name", "last_name", "identifier")
    ordering = ("email",)
    fieldsets = UserAdmin.fieldsets + (
        ("Hallmark", {"fields": ("role", "identifier", "level", "is_password_set")}),
    )
