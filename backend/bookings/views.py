import logging

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsDriver, IsParent
from children.models import Child
from services.booking_management import (
    BookingNotFoundError,
    BookingValidationError,
    InvalidBookingTransitionError,
    DriverUnavailableError,
    RouteNotCompatibleError,
    RouteConfirmationRequiredError,
    quote_booking,
    create_booking,
    update_booking_status,
    extend_booking,
    cancel_rides_for_date,
    get_parent_bookings,
    get_driver_bookings,
)
from .serializers import (
    BookingSerializer,
    BookingCreateSerializer,
    BookingQuoteSerializer,
    BookingStatusSerializer,
    BookingExtendSerializer,
    CancelDaySerializer,
)

logger = logging.getLogger(__name__)


def booking_error_response(exc):
    """Map booking service errors to HTTP responses."""
    if isinstance(exc, BookingNotFoundError):
        return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, RouteConfirmationRequiredError):
        body = {"error": str(exc), "requires_confirmation": True}
        if exc.compatibility is not None:
            body["route"] = exc.compatibility.as_dict()
        return Response(body, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, DriverUnavailableError):
        return Response({"error": str(exc)}, status=status.HTTP_409_CONFLICT)
    return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


BOOKING_ERRORS = (
    BookingNotFoundError,
    BookingValidationError,
    InvalidBookingTransitionError,
    DriverUnavailableError,
    RouteNotCompatibleError,
    RouteConfirmationRequiredError,
)


# ==================== Parent Booking APIs ====================

class ParentBookingListCreateView(APIView):
    permission_classes = [IsParent]

    def get(self, request):
        bookings = get_parent_bookings(request.user, request.query_params.get("status"))
        serializer = BookingSerializer(bookings, many=True)
        return Response({"count": len(serializer.data), "bookings": serializer.data})

    def post(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booking = create_booking(request.user, **serializer.validated_data)
        except BOOKING_ERRORS as e:
            return booking_error_response(e)

        return Response({
            **BookingSerializer(booking).data,
            "message": "Booking request sent to driver",
        }, status=status.HTTP_201_CREATED)


class BookingQuoteView(APIView):
    permission_classes = [IsParent]

    def post(self, request):
        serializer = BookingQuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        child = Child.objects.filter(id=data["child_id"], parent=request.user).first()
        if child is None:
            return Response({"error": "Child not found"}, status=status.HTTP_404_NOT_FOUND)

        try:
            quote = quote_booking(child, data["driver_id"], data["ride_date"], data.get("end_date"))
        except BOOKING_ERRORS as e:
            return booking_error_response(e)

        return Response(quote.as_dict())


class BookingExtendView(APIView):
    permission_classes = [IsParent]

    def post(self, request, booking_id: int):
        serializer = BookingExtendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booking, extension_price = extend_booking(
                request.user, booking_id, serializer.validated_data["additional_days"]
            )
        except BOOKING_ERRORS as e:
            return booking_error_response(e)

        return Response({
            **BookingSerializer(booking).data,
            "extension_price": str(extension_price),
            "message": "Booking extended",
        })


# ==================== Shared ====================

class BookingStatusView(APIView):
    """Driver confirms/rejects/completes; parent cancels."""
    permission_classes = [IsAuthenticated]

    def post(self, request, booking_id: int):
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booking = update_booking_status(
                request.user,
                booking_id,
                serializer.validated_data["status"],
                serializer.validated_data["reason"],
            )
        except BOOKING_ERRORS as e:
            return booking_error_response(e)

        return Response(BookingSerializer(booking).data)


# ==================== Driver Booking APIs ====================

class DriverBookingListView(APIView):
    permission_classes = [IsDriver]

    def get(self, request):
        bookings = get_driver_bookings(request.user, request.query_params.get("status"))
        serializer = BookingSerializer(bookings, many=True)
        return Response({"count": len(serializer.data), "bookings": serializer.data})


class DriverCancelDayView(APIView):
    """Skip one day of rides for every confirmed booking."""
    permission_classes = [IsDriver]

    def post(self, request):
        serializer = CancelDaySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        affected = cancel_rides_for_date(
            request.user,
            serializer.validated_data["date"],
            serializer.validated_data["reason"],
        )
        return Response({
            "message": f"Rides cancelled for {serializer.validated_data['date'].isoformat()}",
            "affected_bookings": [booking.id for booking in affected],
        })
