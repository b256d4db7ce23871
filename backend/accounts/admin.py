from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin panel for parents, drivers and platform admins"""

    list_display = ["username", "email", "role", "phone_number", "is_active", "date_joined"]
    list_filter = ["role", "is_active", "is_staff"]
    search_fields = ["username", "email", "phone_number", "first_name", "last_name"]
    ordering = ("-date_joined",)

    fieldsets = BaseUserAdmin.fieldsets + (
        ("School Ride", {"fields": ("role", "phone_number", "profile_picture")}),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("School Ride", {"fields": ("role", "phone_number")}),
    )
