from django.db import models
from django.conf import settings

from common.utils import as_point


class Child(models.Model):
    """A child registered by a parent, with home pickup and school locations"""
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]

    parent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='children'
    )

    full_name = models.CharField(max_length=150)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    student_id = models.CharField(max_length=50, blank=True)
    avatar = models.ImageField(upload_to='child_avatars/', null=True, blank=True)

    # School
    school_name = models.CharField(max_length=200)
    school_latitude = models.DecimalField(max_digits=10, decimal_places=6)
    school_longitude = models.DecimalField(max_digits=10, decimal_places=6)
    school_address = models.TextField(blank=True)

    # Trip start (home pickup)
    pickup_latitude = models.DecimalField(max_digits=10, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=10, decimal_places=6)
    pickup_address = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'children'
        ordering = ['full_name']

    @property
    def pickup_location(self):
        return as_point(self.pickup_latitude, self.pickup_longitude, self.pickup_address)

    @property
    def school_location(self):
        return as_point(self.school_latitude, self.school_longitude, self.school_address)

    def __str__(self):
        return f"{self.full_name} ({self.school_name})"
