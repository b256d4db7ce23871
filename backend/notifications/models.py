from django.db import models
from django.conf import settings


class Notification(models.Model):
    """In-app notification; also pushed live to the recipient's socket group"""

    TYPE_CHOICES = [
        ('attendance', 'Attendance'),
        ('trip_end', 'Trip End'),
        ('booking', 'Booking'),
        ('approval', 'Approval'),
        ('emergency_sos', 'Emergency SOS'),
        ('payment', 'Payment'),
        ('ride_cancellation', 'Ride Cancellation'),
    ]

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sent_notifications'
    )
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.type} -> {self.recipient}: {self.title}"
