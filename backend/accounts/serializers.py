from rest_framework import serializers
from django.contrib.auth import authenticate
from .models import User
from drivers.models import DriverProfile


class UserSerializer(serializers.ModelSerializer):
    profile_picture_url = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "role",
            "phone_number",
            "is_active",
            "profile_picture",
            "profile_picture_url",
        ]
        read_only_fields = ["id", "role", "is_active", "profile_picture_url"]
        extra_kwargs = {
            "profile_picture": {"write_only": True, "required": False}
        }

    def get_profile_picture_url(self, obj):
        """Absolute URL when a request is available, so mobile clients can load it directly."""
        if obj.profile_picture:
            request = self.context.get("request")
            if request:
                return request.build_absolute_uri(obj.profile_picture.url)
            return obj.profile_picture.url
        return None


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        user = authenticate(username=data["username"], password=data["password"])
        if not user:
            raise serializers.ValidationError("Invalid username or password")
        return user


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=6)
    role = serializers.ChoiceField(choices=["parent", "driver"], default="parent")
    phone_number = serializers.CharField(required=False, allow_blank=True)
    vehicle_number = serializers.CharField(required=False)

    class Meta:
        model = User
        fields = ['username', 'password', 'email', 'first_name', 'last_name', 'role', 'phone_number', 'vehicle_number']

    def validate_email(self, value):
        if value and User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Email already exists")
        return value

    def create(self, validated_data):
        vehicle_number = validated_data.pop('vehicle_number', "")

        user = User.objects.create_user(
            username=validated_data['username'],
            email=validated_data.get('email', ""),
            password=validated_data['password'],
            first_name=validated_data.get('first_name', ""),
            last_name=validated_data.get('last_name', ""),
            role=validated_data['role'],
            phone_number=validated_data.get('phone_number', ""),
        )

        # Drivers start pending approval with an empty vehicle/route
        if user.role == 'driver':
            DriverProfile.objects.create(user=user, vehicle_number=vehicle_number)

        return user


class AdminUserSerializer(UserSerializer):
    driver_status = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["driver_status", "date_joined"]

    def get_driver_status(self, obj):
        profile = DriverProfile.objects.filter(user=obj).first()
        return profile.status if profile else None


class DriverApprovalSerializer(serializers.Serializer):
    approved = serializers.BooleanField()


class UserActivationSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()
