from django.contrib import admin
from drivers.models import DriverProfile, DriverRating, TrustedDriver


@admin.register(DriverProfile)
class DriverProfileAdmin(admin.ModelAdmin):
    """Admin panel for reviewing and approving drivers"""

    list_display = [
        "user",
        "vehicle_type",
        "vehicle_number",
        "vehicle_capacity",
        "status",
        "booking_open",
        "last_location_update",
    ]

    list_filter = [
        "status",
        "vehicle_type",
        "booking_open",
    ]

    search_fields = [
        "user__username",
        "vehicle_number",
    ]

    readonly_fields = [
        "last_location_update",
    ]

    actions = ["approve_drivers", "reject_drivers"]

    @admin.action(description="Approve selected drivers")
    def approve_drivers(self, request, queryset):
        queryset.update(status="approved")

    @admin.action(description="Reject selected drivers")
    def reject_drivers(self, request, queryset):
        queryset.update(status="rejected")


@admin.register(DriverRating)
class DriverRatingAdmin(admin.ModelAdmin):
    list_display = ["driver", "parent", "booking", "rating", "created_at"]
    list_filter = ["rating"]
    search_fields = ["driver__username", "parent__username"]


@admin.register(TrustedDriver)
class TrustedDriverAdmin(admin.ModelAdmin):
    list_display = ["parent", "driver", "is_preferred", "is_priority", "updated_at"]
    list_filter = ["is_priority"]
