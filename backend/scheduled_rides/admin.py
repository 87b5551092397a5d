"""Operator view of the scheduled rides mirror in the Django admin"""

from django.contrib import admin
from .models import ScheduledRide


@admin.register(ScheduledRide)
class ScheduledRideAdmin(admin.ModelAdmin):
    """Scheduled ride admin"""
    list_display = ['id', 'user', 'vehicle_type', 'status', 'scheduled_time', 'booking_id', 'created_at']
    list_filter = ['status', 'vehicle_type', 'scheduled_time']
    search_fields = ['id', 'user__username', 'pickup_location', 'drop_location', 'booking_id']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'scheduled_time'
