from django.utils import timezone
from rest_framework import serializers

from drivers.serializers import DriverBasicSerializer
from .models import Booking


class PaymentSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    status = serializers.CharField()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    upfront_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    balance_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    remaining_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    balance_due_date = serializers.DateField()


class BookingSerializer(serializers.ModelSerializer):
    """Serializer for Bookings"""
    driver = DriverBasicSerializer(read_only=True, source='driver.driver_profile')
    parent_name = serializers.SerializerMethodField()
    child_name = serializers.CharField(source='child.full_name', read_only=True, default=None)
    payment = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = ['id', 'parent', 'parent_name', 'driver', 'child', 'child_name',
                  'pickup_latitude', 'pickup_longitude', 'pickup_address',
                  'dropoff_latitude', 'dropoff_longitude', 'dropoff_address',
                  'ride_date', 'end_date', 'recurring_days', 'daily_time', 'cancelled_dates',
                  'status', 'total_price', 'route_quality', 'notes', 'payment',
                  'created_at', 'confirmed_at', 'completed_at', 'cancelled_at', 'cancellation_reason']
        read_only_fields = fields

    def get_parent_name(self, obj):
        return obj.parent.get_full_name() or obj.parent.username

    def get_payment(self, obj):
        payment = getattr(obj, 'payment', None)
        if payment is None:
            return None
        return PaymentSummarySerializer(payment).data


def validate_not_past(value):
    if value < timezone.localdate():
        raise serializers.ValidationError("Bookings cannot start in the past")
    return value


class BookingCreateSerializer(serializers.Serializer):
    """Serializer for creating bookings"""
    child_id = serializers.IntegerField()
    driver_id = serializers.IntegerField()
    ride_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)
    daily_time = serializers.TimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    confirm_route_warning = serializers.BooleanField(required=False, default=False)

    def validate_ride_date(self, value):
        return validate_not_past(value)

    def validate(self, data):
        end_date = data.get('end_date')
        if end_date and end_date < data['ride_date']:
            raise serializers.ValidationError({'end_date': 'End date cannot be before the start date'})
        return data


class BookingQuoteSerializer(serializers.Serializer):
    child_id = serializers.IntegerField()
    driver_id = serializers.IntegerField()
    ride_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)

    def validate_ride_date(self, value):
        return validate_not_past(value)


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['confirmed', 'cancelled', 'completed'])
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class BookingExtendSerializer(serializers.Serializer):
    additional_days = serializers.IntegerField(min_value=1, max_value=365)


class CancelDaySerializer(serializers.Serializer):
    date = serializers.DateField()
    reason = serializers.CharField(required=False, allow_blank=True, default="")
