from rest_framework import serializers
from drivers.models import DriverProfile, DriverRating, TrustedDriver
from accounts.serializers import UserSerializer


class DriverProfileSerializer(serializers.ModelSerializer):
    """
    Full driver profile serializer
    """
    user = UserSerializer(read_only=True)
    route_start = serializers.JSONField(read_only=True)
    route_end = serializers.JSONField(read_only=True)

    class Meta:
        model = DriverProfile
        fields = [
            "id",
            "user",
            "gender",
            "vehicle_type",
            "vehicle_number",
            "vehicle_model",
            "vehicle_capacity",
            "route_start",
            "route_end",
            "status",
            "booking_open",
            "current_latitude",
            "current_longitude",
            "last_location_update",
        ]
        read_only_fields = ["id", "status", "current_latitude", "current_longitude", "last_location_update"]

    def to_representation(self, instance):
        """Ensure user serializer gets request context for URL generation"""
        representation = super().to_representation(instance)
        if 'user' in representation and instance.user:
            request = self.context.get('request')
            representation['user'] = UserSerializer(instance.user, context={'request': request}).data
        return representation


class DriverBasicSerializer(serializers.ModelSerializer):
    """
    Lite version of driver info for bookings and driver listings.
    """
    user_id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    full_name = serializers.SerializerMethodField()
    phone_number = serializers.CharField(source="user.phone_number", read_only=True)

    class Meta:
        model = DriverProfile
        fields = [
            "id",
            "user_id",
            "username",
            "full_name",
            "phone_number",
            "gender",
            "vehicle_type",
            "vehicle_number",
            "vehicle_model",
            "vehicle_capacity",
        ]

    def get_full_name(self, obj):
        return obj.user.get_full_name() or obj.user.username


class DriverProfileUpdateSerializer(serializers.Serializer):
    gender = serializers.ChoiceField(choices=DriverProfile.GENDER_CHOICES, required=False)
    vehicle_number = serializers.CharField(required=False, allow_blank=True)


class VehicleSerializer(serializers.Serializer):
    vehicle_type = serializers.ChoiceField(choices=DriverProfile.VEHICLE_TYPE_CHOICES)
    vehicle_capacity = serializers.IntegerField(min_value=1, max_value=60)
    vehicle_number = serializers.CharField(required=False, allow_blank=True, default="")
    vehicle_model = serializers.CharField(required=False, allow_blank=True, default="")


class PointSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
    address = serializers.CharField(required=False, allow_blank=True, default="")


class RouteSerializer(serializers.Serializer):
    start = PointSerializer()
    end = PointSerializer()


class BookingOpenSerializer(serializers.Serializer):
    booking_open = serializers.BooleanField()


class LocationUpdateSerializer(serializers.Serializer):
    latitude = serializers.DecimalField(max_digits=10, decimal_places=6)
    longitude = serializers.DecimalField(max_digits=10, decimal_places=6)
    ride_id = serializers.IntegerField(required=False)


class AvailableDriversQuerySerializer(serializers.Serializer):
    child_id = serializers.IntegerField(required=False)
    gender = serializers.ChoiceField(choices=DriverProfile.GENDER_CHOICES, required=False)
    route_quality = serializers.ChoiceField(choices=["Excellent", "Good", "Fair"], required=False)
    min_seats = serializers.IntegerField(min_value=1, required=False, default=1)
    vehicle_type = serializers.ChoiceField(choices=DriverProfile.VEHICLE_TYPE_CHOICES, required=False)
    min_rating = serializers.FloatField(min_value=1, max_value=5, required=False)
    recommended = serializers.BooleanField(required=False, default=False)


class DriverRatingSerializer(serializers.ModelSerializer):
    parent_name = serializers.SerializerMethodField()

    class Meta:
        model = DriverRating
        fields = ["id", "driver", "booking", "rating", "comment", "parent_name", "created_at"]
        read_only_fields = fields

    def get_parent_name(self, obj):
        return obj.parent.get_full_name() or obj.parent.username


class RateDriverSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, default="")


class TrustedDriverSerializer(serializers.ModelSerializer):
    driver = serializers.SerializerMethodField()

    class Meta:
        model = TrustedDriver
        fields = ["id", "driver", "is_preferred", "is_priority", "notes", "updated_at"]
        read_only_fields = fields

    def get_driver(self, obj):
        profile = getattr(obj.driver, "driver_profile", None)
        if profile is None:
            return {"user_id": obj.driver_id, "username": obj.driver.username}
        return DriverBasicSerializer(profile).data


class TrustedDriverUpdateSerializer(serializers.Serializer):
    is_preferred = serializers.BooleanField(required=False, default=True)
    is_priority = serializers.BooleanField(required=False, default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
