from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from realtime.utils import is_ride_participant
from .models import ActiveRide
from .serializers import (
    ActiveRideSerializer,
    ChildStatusSerializer,
    EmergencyAlertCreateSerializer,
    EmergencyAlertSerializer,
    TrackingSessionSerializer,
)

# Import from services layer
from services.ride_management import (
    RideNotFoundError,
    RideChildNotFoundError,
    RideAlreadyCompletedError,
    InvalidAttendanceTransitionError,
    NoBookingsTodayError,
    ActiveRideExistsError,
    LocationTracker,
    start_ride as start_ride_service,
    update_child_status as update_child_status_service,
    complete_ride_early as complete_ride_early_service,
    get_active_ride,
    get_active_rides_for_parent,
    get_driver_ride_history,
    trigger_emergency_alert,
    resolve_emergency_alert,
)


def _driver_only(request):
    if request.user.role != 'driver':
        return Response(
            {'error': 'Only drivers can perform this action'},
            status=status.HTTP_403_FORBIDDEN
        )
    return None


def _ride_error(exc):
    if isinstance(exc, (RideNotFoundError, RideChildNotFoundError)):
        return Response({'error': str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, (RideAlreadyCompletedError, ActiveRideExistsError)):
        return Response({'error': str(exc)}, status=status.HTTP_409_CONFLICT)
    return Response({'error': str(exc)}, status=status.HTTP_400_BAD_REQUEST)


# ==================== Driver Ride APIs ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def start_ride(request):
    """Start today's ride with every child booked for today"""
    denied = _driver_only(request)
    if denied:
        return denied

    try:
        result = start_ride_service(request.user)
    except (ActiveRideExistsError, NoBookingsTodayError) as e:
        return _ride_error(e)

    return Response({
        **ActiveRideSerializer(result.ride).data,
        'message': result.message,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_ride(request):
    """Driver's in-progress ride for today"""
    denied = _driver_only(request)
    if denied:
        return denied

    ride = get_active_ride(request.user)
    if ride is None:
        return Response({'ride': None, 'message': 'No active ride'})
    return Response({'ride': ActiveRideSerializer(ride).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_child_status(request, ride_id, ride_child_id):
    """Mark a child picked up, absent or dropped off"""
    denied = _driver_only(request)
    if denied:
        return denied

    serializer = ChildStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = update_child_status_service(
            request.user,
            ride_id,
            ride_child_id,
            serializer.validated_data['status'],
            serializer.validated_data['notes'],
        )
    except (RideNotFoundError, RideChildNotFoundError, RideAlreadyCompletedError,
            InvalidAttendanceTransitionError) as e:
        return _ride_error(e)

    return Response({
        'message': result.message,
        'ride_completed': result.ride_completed,
        'ride': ActiveRideSerializer(result.ride).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def complete_ride(request, ride_id):
    """Complete the ride early"""
    denied = _driver_only(request)
    if denied:
        return denied

    try:
        result = complete_ride_early_service(request.user, ride_id)
    except (RideNotFoundError, RideAlreadyCompletedError) as e:
        return _ride_error(e)

    return Response({
        'message': result.message,
        'ride': ActiveRideSerializer(result.ride).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ride_history(request):
    denied = _driver_only(request)
    if denied:
        return denied

    rides = get_driver_ride_history(request.user)
    serializer = ActiveRideSerializer(rides, many=True)
    return Response({'count': len(serializer.data), 'rides': serializer.data})


# ==================== Tracking ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def start_tracking(request, ride_id):
    denied = _driver_only(request)
    if denied:
        return denied

    tracker = LocationTracker(request.user)
    try:
        session = tracker.start(ride_id)
    except (RideNotFoundError, RideAlreadyCompletedError) as e:
        return _ride_error(e)

    return Response(TrackingSessionSerializer(session).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stop_tracking(request, ride_id):
    denied = _driver_only(request)
    if denied:
        return denied

    tracker = LocationTracker.resume(request.user, ride_id)
    if not tracker.is_tracking:
        return Response({'error': 'Location tracking is not active'}, status=status.HTTP_400_BAD_REQUEST)

    session = tracker.stop()
    return Response(TrackingSessionSerializer(session).data)


# ==================== Emergency ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def emergency_alert(request, ride_id):
    """Driver SOS: alert every parent on the ride"""
    denied = _driver_only(request)
    if denied:
        return denied

    serializer = EmergencyAlertCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        alert = trigger_emergency_alert(
            request.user,
            ride_id,
            latitude=serializer.validated_data.get('latitude'),
            longitude=serializer.validated_data.get('longitude'),
            message=serializer.validated_data['message'],
        )
    except RideNotFoundError as e:
        return _ride_error(e)

    return Response({
        **EmergencyAlertSerializer(alert).data,
        'parents_notified': len(alert.parent_ids),
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def resolve_emergency(request, alert_id):
    denied = _driver_only(request)
    if denied:
        return denied

    try:
        alert = resolve_emergency_alert(request.user, alert_id)
    except RideNotFoundError as e:
        return _ride_error(e)
    return Response(EmergencyAlertSerializer(alert).data)


# ==================== Parent / Shared ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def parent_active_rides(request):
    """In-progress rides carrying the parent's children"""
    if request.user.role != 'parent':
        return Response(
            {'error': 'Only parents can view this'},
            status=status.HTTP_403_FORBIDDEN
        )

    rides = get_active_rides_for_parent(request.user)
    serializer = ActiveRideSerializer(rides, many=True)
    return Response({'count': len(serializer.data), 'rides': serializer.data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ride_detail(request, ride_id):
    ride = ActiveRide.objects.filter(id=ride_id).prefetch_related('children').first()
    if ride is None or not is_ride_participant(ride, request.user.id):
        return Response({'error': 'Ride not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(ActiveRideSerializer(ride).data)
