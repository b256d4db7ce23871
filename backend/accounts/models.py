from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Extended user model with role selection"""
    ROLE_CHOICES = [
        ('parent', 'Parent'),
        ('driver', 'Driver'),
        ('admin', 'Admin'),
    ]
    
    # Role & basic info
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='parent')
    phone_number = models.CharField(max_length=15, blank=True)
    profile_picture = models.ImageField(upload_to='profile_pictures/', null=True, blank=True)
    
    class Meta:
        db_table = 'users'

    @property
    def is_parent(self):
        return self.role == 'parent'

    @property
    def is_driver(self):
        return self.role == 'driver'

    @property
    def is_platform_admin(self):
        return self.role == 'admin' or self.is_superuser
        
    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
