from django.db import models
from django.conf import settings

from common.utils import as_point


class ActiveRide(models.Model):
    """A driver's shift for one day, tracking attendance per child"""

    STATUS_CHOICES = [
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
    ]

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='active_rides'
    )
    date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='in_progress')
    completed_early = models.BooleanField(default=False)

    # Aggregate counts, recomputed on every attendance change
    total_children = models.PositiveIntegerField(default=0)
    picked_up_count = models.PositiveIntegerField(default=0)
    absent_count = models.PositiveIntegerField(default=0)
    dropped_off_count = models.PositiveIntegerField(default=0)

    # Timestamps
    started_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'active_rides'
        ordering = ['-date']
        constraints = [
            models.UniqueConstraint(
                fields=['driver', 'date'],
                name='unique_driver_ride_per_day'
            )
        ]

    @property
    def ride_key(self) -> str:
        return f"{self.driver_id}_{self.date.isoformat()}"

    def __str__(self):
        return f"Ride {self.ride_key} - {self.status}"


class RideChild(models.Model):
    """Attendance record for one child within an active ride"""

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('picked_up', 'Picked Up'),
        ('absent', 'Absent'),
        ('dropped_off', 'Dropped Off'),
    ]

    TERMINAL_STATUSES = ('dropped_off', 'absent')

    # pending -> picked_up -> dropped_off, or pending -> absent
    TRANSITIONS = {
        'pending': ('picked_up', 'absent'),
        'picked_up': ('dropped_off',),
        'absent': (),
        'dropped_off': (),
    }

    ride = models.ForeignKey(
        ActiveRide,
        on_delete=models.CASCADE,
        related_name='children'
    )
    child = models.ForeignKey(
        'children.Child',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ride_records'
    )
    booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ride_records'
    )
    order = models.PositiveIntegerField(default=0)
    full_name = models.CharField(max_length=150)

    pickup_latitude = models.DecimalField(max_digits=10, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=10, decimal_places=6)
    pickup_address = models.TextField(blank=True)
    dropoff_latitude = models.DecimalField(max_digits=10, decimal_places=6)
    dropoff_longitude = models.DecimalField(max_digits=10, decimal_places=6)
    dropoff_address = models.TextField(blank=True)
    scheduled_pickup_time = models.CharField(max_length=20, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    picked_up_at = models.DateTimeField(null=True, blank=True)
    dropped_off_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'ride_children'
        ordering = ['order']

    @property
    def pickup_location(self):
        return as_point(self.pickup_latitude, self.pickup_longitude, self.pickup_address)

    @property
    def dropoff_location(self):
        return as_point(self.dropoff_latitude, self.dropoff_longitude, self.dropoff_address)

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.TRANSITIONS.get(self.status, ())

    def __str__(self):
        return f"{self.full_name} - {self.status}"


class EmergencyAlert(models.Model):
    """SOS raised by a driver during a ride"""

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('resolved', 'Resolved'),
    ]

    ride = models.ForeignKey(
        ActiveRide,
        on_delete=models.CASCADE,
        related_name='emergency_alerts'
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='emergency_alerts'
    )
    latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    address = models.TextField(blank=True)
    message = models.TextField()
    parent_ids = models.JSONField(default=list, blank=True)
    nearby_services = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'emergency_alerts'
        ordering = ['-created_at']

    def __str__(self):
        return f"SOS #{self.id} - Ride {self.ride_id} - {self.status}"


class TrackingSession(models.Model):
    """Live location sharing session owned by the driver running a ride"""

    ride = models.ForeignKey(
        ActiveRide,
        on_delete=models.CASCADE,
        related_name='tracking_sessions'
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tracking_sessions'
    )
    is_active = models.BooleanField(default=True)
    last_latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    last_longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    total_distance_km = models.FloatField(default=0)

    started_at = models.DateTimeField(auto_now_add=True)
    last_update_at = models.DateTimeField(null=True, blank=True)
    stopped_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'tracking_sessions'
        ordering = ['-started_at']

    def __str__(self):
        return f"Tracking #{self.id} - Ride {self.ride_id} ({'active' if self.is_active else 'stopped'})"
