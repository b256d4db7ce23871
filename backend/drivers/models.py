from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.conf import settings

from common.utils import as_point

User = settings.AUTH_USER_MODEL


class DriverProfile(models.Model):
    """Driver vehicle, habitual route and approval state"""
    STATUS_CHOICES = [
        ('pending', 'Pending Approval'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    VEHICLE_TYPE_CHOICES = [
        ('van', 'Van'),
        ('mini van', 'Mini Van'),
        ('school bus', 'School Bus'),
    ]

    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]
    
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='driver_profile')
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    
    # Vehicle details
    vehicle_type = models.CharField(max_length=20, choices=VEHICLE_TYPE_CHOICES, blank=True)
    vehicle_number = models.CharField(max_length=20, blank=True)
    vehicle_model = models.CharField(max_length=100, blank=True)
    vehicle_capacity = models.PositiveIntegerField(null=True, blank=True)

    # Habitual route (start near home pickups, end near schools)
    route_start_latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    route_start_longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    route_start_address = models.TextField(blank=True)
    route_end_latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    route_end_longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    route_end_address = models.TextField(blank=True)
    
    # Approval & booking window
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    booking_open = models.BooleanField(default=True)

    # Live location
    current_latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    current_longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    last_location_update = models.DateTimeField(null=True, blank=True)
    
    class Meta:
        db_table = 'driver_profiles'

    @property
    def route_start(self):
        return as_point(self.route_start_latitude, self.route_start_longitude, self.route_start_address)

    @property
    def route_end(self):
        return as_point(self.route_end_latitude, self.route_end_longitude, self.route_end_address)

    @property
    def has_route(self):
        return self.route_start is not None and self.route_end is not None
        
    def __str__(self):
        return f"{self.user.username} - {self.vehicle_number or 'no vehicle'}"


class DriverRating(models.Model):
    """A parent's 1-5 star rating of a driver, one per booking"""

    parent = models.ForeignKey(User, on_delete=models.CASCADE, related_name='given_ratings')
    driver = models.ForeignKey(User, on_delete=models.CASCADE, related_name='ratings')
    booking = models.ForeignKey('bookings.Booking', on_delete=models.CASCADE, related_name='ratings')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'driver_ratings'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['parent', 'booking'], name='unique_rating_per_booking'),
        ]

    def __str__(self):
        return f"{self.driver_id} rated {self.rating} by {self.parent_id}"


class TrustedDriver(models.Model):
    """A driver a parent has marked as preferred or priority"""

    parent = models.ForeignKey(User, on_delete=models.CASCADE, related_name='trusted_drivers')
    driver = models.ForeignKey(User, on_delete=models.CASCADE, related_name='trusted_by')
    is_preferred = models.BooleanField(default=True)
    is_priority = models.BooleanField(default=False)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'trusted_drivers'
        ordering = ['-is_priority', '-updated_at']
        constraints = [
            models.UniqueConstraint(fields=['parent', 'driver'], name='unique_trusted_driver'),
        ]

    def __str__(self):
        return f"{self.parent_id} trusts {self.driver_id}"
