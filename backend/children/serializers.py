from rest_framework import serializers

from .models import Child


class ChildSerializer(serializers.ModelSerializer):
    pickup_location = serializers.JSONField(read_only=True)
    school_location = serializers.JSONField(read_only=True)
    has_active_booking = serializers.SerializerMethodField()

    class Meta:
        model = Child
        fields = [
            "id",
            "full_name",
            "date_of_birth",
            "gender",
            "student_id",
            "avatar",
            "school_name",
            "school_latitude",
            "school_longitude",
            "school_address",
            "pickup_latitude",
            "pickup_longitude",
            "pickup_address",
            "pickup_location",
            "school_location",
            "has_active_booking",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {
            "avatar": {"required": False},
        }

    def get_has_active_booking(self, obj):
        return obj.bookings.filter(status__in=("pending", "confirmed")).exists()

    def validate(self, data):
        for prefix in ("school", "pickup"):
            lat = data.get(f"{prefix}_latitude")
            lng = data.get(f"{prefix}_longitude")
            if lat is not None and not -90 <= lat <= 90:
                raise serializers.ValidationError({f"{prefix}_latitude": "Latitude must be between -90 and 90"})
            if lng is not None and not -180 <= lng <= 180:
                raise serializers.ValidationError({f"{prefix}_longitude": "Longitude must be between -180 and 180"})
        return data
