"""Tells what to show in the Django admin interface for rides app"""

from django.contrib import admin
from .models import ActiveRide, RideChild, EmergencyAlert, TrackingSession


class RideChildInline(admin.TabularInline):
    model = RideChild
    extra = 0
    readonly_fields = ['picked_up_at', 'dropped_off_at']


@admin.register(ActiveRide)
class ActiveRideAdmin(admin.ModelAdmin):
    """Active ride admin"""
    list_display = ['id', 'driver', 'date', 'status', 'total_children', 'picked_up_count',
                    'absent_count', 'dropped_off_count', 'completed_early']
    list_filter = ['status', 'date']
    search_fields = ['driver__username']
    readonly_fields = ['started_at', 'completed_at', 'updated_at']
    date_hierarchy = 'date'
    inlines = [RideChildInline]


@admin.register(EmergencyAlert)
class EmergencyAlertAdmin(admin.ModelAdmin):
    list_display = ("id", "ride", "driver", "status", "created_at", "resolved_at")
    list_filter = ("status",)
    search_fields = ("driver__username", "address")


@admin.register(TrackingSession)
class TrackingSessionAdmin(admin.ModelAdmin):
    list_display = ("id", "ride", "driver", "is_active", "total_distance_km", "started_at", "stopped_at")
    list_filter = ("is_active",)
