from django.contrib import admin

from .models import Child


@admin.register(Child)
class ChildAdmin(admin.ModelAdmin):
    list_display = ("full_name", "parent", "school_name", "gender", "created_at")
    list_filter = ("gender",)
    search_fields = ("full_name", "school_name", "student_id", "parent__username")
