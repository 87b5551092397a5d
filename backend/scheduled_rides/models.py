from django.db import models
from django.conf import settings


class ScheduledRide(models.Model):
    """Server-side mirror of a ride scheduled on a user's device"""

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('booked', 'Booked'),
        ('cancelled', 'Cancelled'),
        ('expired', 'Expired'),
    ]

    VEHICLE_CHOICES = [
        ('bike', 'Bike'),
        ('auto', 'Auto Rickshaw'),
        ('car', 'Car'),
    ]

    # Generated on the device, stable for the ride's lifetime
    id = models.CharField(primary_key=True, max_length=64)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='scheduled_rides'
    )

    # Pickup location
    pickup_location = models.TextField(blank=True, default='')
    pickup_lat = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_lng = models.DecimalField(max_digits=9, decimal_places=6)

    # Drop location
    drop_location = models.TextField(blank=True, default='')
    drop_lat = models.DecimalField(max_digits=9, decimal_places=6)
    drop_lng = models.DecimalField(max_digits=9, decimal_places=6)

    scheduled_time = models.DateTimeField()
    vehicle_type = models.CharField(max_length=10, choices=VEHICLE_CHOICES)
    preferences = models.JSONField(default=dict, blank=True)

    # Status & resulting booking
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    booking_id = models.CharField(max_length=64, null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'scheduled_rides'
        ordering = ['scheduled_time']
        indexes = [
            models.Index(fields=['user', 'status'], name='scheduled_user_status_idx'),
            models.Index(fields=['scheduled_time'], name='scheduled_time_idx'),
        ]

    def __str__(self):
        return f"Scheduled ride {self.id} - {self.user} - {self.status}"
