from rest_framework import serializers

from services.scheduling import VEHICLE_TYPES


class LocationSerializer(serializers.Serializer):
    """Pickup or drop point"""
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    address = serializers.CharField(required=False, allow_blank=True, default='')


class ScheduledRideCreateSerializer(serializers.Serializer):
    """Serializer for scheduling a ride"""
    pickup = LocationSerializer()
    drop = LocationSerializer()
    scheduled_time = serializers.DateTimeField()
    vehicle_type = serializers.ChoiceField(choices=list(VEHICLE_TYPES.items()))
    preferences = serializers.JSONField(required=False, default=dict)

    def validate_preferences(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Preferences must be an object')
        return value


class ScheduledRideSerializer(serializers.Serializer):
    """Read-only serializer for scheduled ride records from the local store"""
    id = serializers.CharField(read_only=True)
    owner_id = serializers.CharField(read_only=True)
    pickup = LocationSerializer(read_only=True)
    drop = LocationSerializer(read_only=True)
    scheduled_time = serializers.DateTimeField(read_only=True)
    vehicle_type = serializers.CharField(read_only=True)
    vehicle_label = serializers.SerializerMethodField()
    preferences = serializers.JSONField(read_only=True)
    status = serializers.CharField(read_only=True)
    booking_id = serializers.CharField(read_only=True, allow_null=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True, allow_null=True)

    def get_vehicle_label(self, ride):
        return VEHICLE_TYPES.get(ride.vehicle_type, ride.vehicle_type)
