from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "parent", "driver", "child", "ride_date", "end_date", "status", "total_price", "route_quality")
    list_filter = ("status", "route_quality")
    search_fields = ("parent__username", "driver__username", "child__full_name")
    readonly_fields = ("created_at", "updated_at", "confirmed_at", "completed_at", "cancelled_at")
