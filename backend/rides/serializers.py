from rest_framework import serializers

from .models import ActiveRide, RideChild, EmergencyAlert, TrackingSession


class RideChildSerializer(serializers.ModelSerializer):
    """Serializer for per-child attendance"""
    parent_id = serializers.SerializerMethodField()

    class Meta:
        model = RideChild
        fields = ['id', 'child', 'booking', 'parent_id', 'order', 'full_name',
                  'pickup_latitude', 'pickup_longitude', 'pickup_address',
                  'dropoff_latitude', 'dropoff_longitude', 'dropoff_address',
                  'scheduled_pickup_time', 'status', 'picked_up_at', 'dropped_off_at', 'notes']
        read_only_fields = fields

    def get_parent_id(self, obj):
        if obj.booking_id and obj.booking:
            return obj.booking.parent_id
        if obj.child_id and obj.child:
            return obj.child.parent_id
        return None


class ActiveRideSerializer(serializers.ModelSerializer):
    """Full ride snapshot, also pushed over WebSocket"""
    ride_key = serializers.CharField(read_only=True)
    driver_name = serializers.SerializerMethodField()
    children = RideChildSerializer(many=True, read_only=True)

    class Meta:
        model = ActiveRide
        fields = ['id', 'ride_key', 'driver', 'driver_name', 'date', 'status', 'completed_early',
                  'total_children', 'picked_up_count', 'absent_count', 'dropped_off_count',
                  'children', 'started_at', 'completed_at', 'updated_at']
        read_only_fields = fields

    def get_driver_name(self, obj):
        return obj.driver.get_full_name() or obj.driver.username


class ChildStatusSerializer(serializers.Serializer):
    """Serializer for a driver's attendance action"""
    status = serializers.ChoiceField(choices=['picked_up', 'absent', 'dropped_off'])
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class EmergencyAlertCreateSerializer(serializers.Serializer):
    latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    message = serializers.CharField(required=False, allow_blank=True, default="")


class EmergencyAlertSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmergencyAlert
        fields = ['id', 'ride', 'driver', 'latitude', 'longitude', 'address', 'message',
                  'parent_ids', 'nearby_services', 'status', 'created_at', 'resolved_at']
        read_only_fields = fields


class TrackingSessionSerializer(serializers.ModelSerializer):
    class Meta:
        model = TrackingSession
        fields = ['id', 'ride', 'is_active', 'last_latitude', 'last_longitude',
                  'total_distance_km', 'started_at', 'last_update_at', 'stopped_at']
        read_only_fields = fields
