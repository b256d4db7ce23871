from datetime import date

from django.db import models
from django.conf import settings

from common.utils import as_point


class Booking(models.Model):
    """A parent's booking of a driver for one child, single-day or recurring"""

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('cancelled', 'Cancelled'),
        ('completed', 'Completed'),
    ]

    ACTIVE_STATUSES = ('pending', 'confirmed')

    # Allowed status moves; anything else is rejected
    TRANSITIONS = {
        'pending': ('confirmed', 'cancelled'),
        'confirmed': ('completed', 'cancelled'),
        'cancelled': (),
        'completed': (),
    }

    # Foreign keys
    parent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='parent_bookings'
    )

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='driver_bookings'
    )

    child = models.ForeignKey(
        'children.Child',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bookings'
    )

    # Pickup location (home)
    pickup_latitude = models.DecimalField(max_digits=10, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=10, decimal_places=6)
    pickup_address = models.TextField(blank=True)

    # Dropoff location (school)
    dropoff_latitude = models.DecimalField(max_digits=10, decimal_places=6)
    dropoff_longitude = models.DecimalField(max_digits=10, decimal_places=6)
    dropoff_address = models.TextField(blank=True)

    # Schedule
    ride_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    recurring_days = models.PositiveIntegerField(default=0)
    daily_time = models.TimeField(null=True, blank=True)
    cancelled_dates = models.JSONField(default=list, blank=True)

    # Status & price
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    route_quality = models.CharField(max_length=20, blank=True)
    notes = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    cancellation_reason = models.TextField(blank=True)

    class Meta:
        db_table = 'bookings'
        ordering = ['-created_at']

    @property
    def pickup_location(self):
        return as_point(self.pickup_latitude, self.pickup_longitude, self.pickup_address)

    @property
    def dropoff_location(self):
        return as_point(self.dropoff_latitude, self.dropoff_longitude, self.dropoff_address)

    @property
    def is_recurring(self):
        return self.end_date is not None

    @property
    def period_end(self) -> date:
        return self.end_date or self.ride_date

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.TRANSITIONS.get(self.status, ())

    def is_cancelled_on(self, day: date) -> bool:
        return day.isoformat() in (self.cancelled_dates or [])

    def is_scheduled_on(self, day: date) -> bool:
        """True if this confirmed booking has a ride on ``day``."""
        if self.status != 'confirmed':
            return False
        if day < self.ride_date or day > self.period_end:
            return False
        # Recurring bookings run on school days only
        if self.is_recurring and day.weekday() >= 5:
            return False
        return not self.is_cancelled_on(day)

    def __str__(self):
        return f"Booking #{self.id} - {self.parent} -> {self.driver} - {self.status}"
