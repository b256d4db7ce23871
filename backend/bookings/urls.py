from django.urls import path

from . import views

urlpatterns = [
    # Parent
    path("", views.ParentBookingListCreateView.as_view(), name="bookings"),
    path("quote/", views.BookingQuoteView.as_view(), name="booking-quote"),
    path("<int:booking_id>/extend/", views.BookingExtendView.as_view(), name="booking-extend"),

    # Parent or driver
    path("<int:booking_id>/status/", views.BookingStatusView.as_view(), name="booking-status"),

    # Driver
    path("driver/", views.DriverBookingListView.as_view(), name="driver-bookings"),
    path("driver/cancel-day/", views.DriverCancelDayView.as_view(), name="driver-cancel-day"),
]
