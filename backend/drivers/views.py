from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsDriver, IsParent
from children.models import Child
from drivers.models import DriverProfile, DriverRating
from drivers.serializers import (
    DriverProfileSerializer,
    DriverBasicSerializer,
    DriverProfileUpdateSerializer,
    VehicleSerializer,
    RouteSerializer,
    BookingOpenSerializer,
    LocationUpdateSerializer,
    AvailableDriversQuerySerializer,
    DriverRatingSerializer,
    RateDriverSerializer,
    TrustedDriverSerializer,
    TrustedDriverUpdateSerializer,
)
from services.matching import (
    RECOMMENDED_MIN_RATING,
    DriverFilters,
    RatingValidationError,
    TrustedDriverError,
    get_driver_availability,
    get_rating_summary,
    get_trusted_drivers,
    list_available_drivers,
    rate_driver,
    remove_trusted_driver,
    set_trusted_driver,
)
from services.ride_management import LocationTracker

from drivers import services


class DriverAPIView(APIView):
    """Endpoints a driver uses on their own profile."""
    permission_classes = [IsDriver]

    def get_profile(self):
        try:
            return self.request.user.driver_profile
        except DriverProfile.DoesNotExist:
            raise NotFound("Driver profile not found")

    def profile_response(self, profile):
        return Response(DriverProfileSerializer(profile, context={"request": self.request}).data)


class DriverProfileView(DriverAPIView):
    def get(self, request):
        return self.profile_response(self.get_profile())

    def put(self, request):
        profile = self.get_profile()
        serializer = DriverProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if serializer.validated_data:
            services.update_driver_profile(profile, **serializer.validated_data)

        return self.profile_response(profile)


class DriverVehicleView(DriverAPIView):
    def put(self, request):
        profile = self.get_profile()
        serializer = VehicleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.update_vehicle(profile, **serializer.validated_data)

        return self.profile_response(profile)


class DriverRouteView(DriverAPIView):
    def put(self, request):
        profile = self.get_profile()
        serializer = RouteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.update_route(profile, serializer.validated_data["start"], serializer.validated_data["end"])

        return Response({
            "message": "Route updated",
            "route_start": profile.route_start,
            "route_end": profile.route_end,
        })


class DriverBookingOpenView(DriverAPIView):
    def get(self, request):
        return Response({"booking_open": self.get_profile().booking_open})

    def put(self, request):
        profile = self.get_profile()
        serializer = BookingOpenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.set_booking_open(profile, serializer.validated_data["booking_open"])

        return Response({
            "message": "Booking opened" if profile.booking_open else "Booking closed",
            "booking_open": profile.booking_open,
        })


# HTTP fallback for the ride socket's tracking_update
class DriverLocationUpdateView(DriverAPIView):
    def get(self, request):
        profile = self.get_profile()
        return Response({
            "latitude": float(profile.current_latitude) if profile.current_latitude else None,
            "longitude": float(profile.current_longitude) if profile.current_longitude else None,
            "last_updated": profile.last_location_update,
        })

    def post(self, request):
        profile = self.get_profile()
        serializer = LocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        lat = serializer.validated_data["latitude"]
        lng = serializer.validated_data["longitude"]

        tracker = LocationTracker.resume(request.user, serializer.validated_data.get("ride_id"))
        if tracker.is_tracking:
            tracker.update(float(lat), float(lng))
        else:
            services.update_driver_location(profile, lat, lng)

        return Response({
            "message": "Location updated",
            "latitude": float(lat),
            "longitude": float(lng),
            "tracking": tracker.is_tracking,
        })


class DriverAvailabilityView(DriverAPIView):
    def get(self, request):
        profile = self.get_profile()
        availability = get_driver_availability(profile.user_id, profile=profile)
        return Response(availability.as_dict())


class AvailableDriversView(APIView):
    """
    Driver selection list for parents.

    GET ?child_id=&gender=&route_quality=&min_seats=&vehicle_type=&min_rating=&recommended=
    """
    permission_classes = [IsParent]

    def get(self, request):
        query = AvailableDriversQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        child = None
        if params.get("child_id") is not None:
            child = Child.objects.filter(id=params["child_id"], parent=request.user).first()
            if child is None:
                raise NotFound("Child not found")

        listings = list_available_drivers(child, DriverFilters(
            gender=params.get("gender"),
            route_quality=params.get("route_quality"),
            min_seats=params.get("min_seats", 1),
            vehicle_type=params.get("vehicle_type"),
            min_rating=RECOMMENDED_MIN_RATING if params.get("recommended") else params.get("min_rating"),
        ), parent_id=request.user.id)

        drivers = []
        for listing in listings:
            drivers.append({
                **DriverBasicSerializer(listing.profile).data,
                "availability": listing.availability.as_dict(),
                "route": listing.compatibility.as_dict() if listing.compatibility else None,
                "rating": {"average": listing.average_rating, "count": listing.rating_count},
                "trusted": listing.trust,
            })

        return Response({"count": len(drivers), "drivers": drivers})


class DriverRatingsView(APIView):
    """
    GET a driver's average rating and recent reviews; POST to rate them.

    POST {booking_id, rating, comment} (parents only)
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsParent()]
        return [IsAuthenticated()]

    def get(self, request, driver_id: int):
        recent = DriverRating.objects.filter(driver_id=driver_id).select_related('parent')[:20]
        return Response({
            **get_rating_summary(driver_id),
            "ratings": DriverRatingSerializer(recent, many=True).data,
        })

    def post(self, request, driver_id: int):
        serializer = RateDriverSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            rating = rate_driver(request.user, driver_id, data["booking_id"], data["rating"], data["comment"])
        except RatingValidationError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            "rating": DriverRatingSerializer(rating).data,
            **get_rating_summary(driver_id),
        }, status=status.HTTP_201_CREATED)


class TrustedDriverListView(APIView):
    permission_classes = [IsParent]

    def get(self, request):
        serializer = TrustedDriverSerializer(get_trusted_drivers(request.user), many=True)
        return Response({"count": len(serializer.data), "trusted_drivers": serializer.data})


class TrustedDriverView(APIView):
    """PUT to add or update a trusted driver; DELETE to remove them."""
    permission_classes = [IsParent]

    def put(self, request, driver_id: int):
        serializer = TrustedDriverUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            trusted = set_trusted_driver(request.user, driver_id, **serializer.validated_data)
        except TrustedDriverError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(TrustedDriverSerializer(trusted).data)

    def delete(self, request, driver_id: int):
        if not remove_trusted_driver(request.user, driver_id):
            raise NotFound("Driver is not in your trusted list")
        return Response(status=status.HTTP_204_NO_CONTENT)
