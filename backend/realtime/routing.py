"""WebSocket URL routing for the realtime app."""

from django.urls import re_path

from .consumers.ride_consumer import RideConsumer

websocket_urlpatterns = [
    # Ride tracking + personal notifications (drivers and parents)
    # URL: ws://localhost:8000/ws/ride/?token=<access>
    re_path(
        r"ws/ride/$",
        RideConsumer.as_asgi(),
        name="ride-ws"
    ),
]
