from django.urls import path
from .views import (
    DriverProfileView,
    DriverVehicleView,
    DriverRouteView,
    DriverBookingOpenView,
    DriverLocationUpdateView,
    DriverAvailabilityView,
)

urlpatterns = [
    path("profile/", DriverProfileView.as_view(), name="driver-profile"),
    path("vehicle/", DriverVehicleView.as_view(), name="driver-vehicle"),
    path("route/", DriverRouteView.as_view(), name="driver-route"),
    path("booking-open/", DriverBookingOpenView.as_view(), name="driver-booking-open"),
    path("location/", DriverLocationUpdateView.as_view(), name="driver-location"),
    path("availability/", DriverAvailabilityView.as_view(), name="driver-availability"),
]
