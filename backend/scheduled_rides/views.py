# scheduled_rides/views.py

import logging

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from services.scheduling import (
    Location,
    ScheduledRideNotFoundError,
    SchedulingValidationError,
    get_ride_manager,
)
from .serializers import ScheduledRideCreateSerializer, ScheduledRideSerializer
from .tasks import reconcile_scheduled_rides_task

logger = logging.getLogger(__name__)


def _wants_history(request) -> bool:
    return request.query_params.get('include_history', '').lower() in ('1', 'true', 'yes')


class ScheduledRideListCreateView(APIView):
    """
    GET: Passenger's scheduled rides (pending only unless ?include_history=true).
    POST: Passenger schedules a ride for later.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        rides = get_ride_manager().get_rides_for_owner(
            request.user.id,
            include_history=_wants_history(request)
        )
        return Response({
            "rides": ScheduledRideSerializer(rides, many=True).data,
            "count": len(rides),
        })

    def post(self, request):
        serializer = ScheduledRideCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = get_ride_manager().create(
                owner_id=request.user.id,
                pickup=Location(**data['pickup']),
                drop=Location(**data['drop']),
                scheduled_time=data['scheduled_time'],
                vehicle_type=data['vehicle_type'],
                preferences=data.get('preferences'),
            )
        except SchedulingValidationError as e:
            return Response(
                {"error": e.message, "field": e.field},
                status=status.HTTP_400_BAD_REQUEST
            )

        return Response({
            "ride": ScheduledRideSerializer(result.ride).data,
            "message": result.message,
            "warnings": result.warnings,
        }, status=status.HTTP_201_CREATED)


class ScheduledRideDetailView(APIView):
    """
    GET: One of the passenger's scheduled rides.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, ride_id: str):
        try:
            ride = get_ride_manager().get_ride(ride_id, owner_id=request.user.id)
        except ScheduledRideNotFoundError:
            return Response({"error": "Scheduled ride not found"}, status=status.HTTP_404_NOT_FOUND)

        return Response(ScheduledRideSerializer(ride).data)


class ScheduledRideCancelView(APIView):
    """
    POST: Passenger cancels a scheduled ride. Safe to repeat.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, ride_id: str):
        try:
            result = get_ride_manager().cancel(ride_id, owner_id=request.user.id)
        except ScheduledRideNotFoundError:
            return Response({"error": "Scheduled ride not found"}, status=status.HTTP_404_NOT_FOUND)

        return Response({
            "success": result.success,
            "ride": ScheduledRideSerializer(result.ride).data,
            "message": result.message,
            "warnings": result.warnings,
        })


class ScheduledRideSyncView(APIView):
    """
    POST: App came to the foreground. Queues a reconciliation pass and returns
    the passenger's rides as they stand now.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        try:
            reconcile_scheduled_rides_task.delay()
            queued = True
        except Exception as e:
            logger.error(f"Could not queue reconciliation for user {request.user.id}: {e}")
            queued = False

        rides = get_ride_manager().get_rides_for_owner(request.user.id, include_history=True)
        return Response({
            "queued": queued,
            "rides": ScheduledRideSerializer(rides, many=True).data,
        })
