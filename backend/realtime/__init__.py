"""
Realtime app for WebSocket communication.

This app provides:
- The ride WebSocket consumer (ride snapshots, live driver location)
- Personal user_<id> groups for in-app notifications
- Group broadcast helpers used by the ride services
- JWT authentication middleware for WebSocket connections

Usage:
    from realtime.consumers import RideConsumer
    from realtime.notifications import broadcast_ride_update, broadcast_driver_location
    from realtime.utils import is_ride_participant, ride_parent_ids
"""
