"""
Notification helpers.

Every notification is stored in-app and pushed to the recipient's personal
WebSocket group: user_<recipient_id>. Sending is fire-and-forget; callers
that must not fail because of a notification use ``notify_safely``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone

from realtime.notifications import user_group

from .models import Notification

logger = logging.getLogger(__name__)


def send_notification(
    recipient_id: int,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
    notification_type: str = "booking",
    sender_id: Optional[int] = None,
) -> Notification:
    """
    Store an in-app notification and push it to user_<recipient_id>.
    
    Args:
        recipient_id: Target user ID
        title: Short title
        body: Message text
        data: Extra payload (JSON-serializable)
        notification_type: One of Notification.TYPE_CHOICES
        sender_id: Optional sending user ID
    
    Returns:
        The stored Notification
    """
    notification = Notification.objects.create(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=notification_type,
        title=title,
        message=body,
        data=data or {},
    )

    channel_layer = get_channel_layer()
    if channel_layer is not None:
        payload = {
            "type": "notification",
            "notification_id": notification.id,
            "notification_type": notification_type,
            "title": title,
            "message": body,
            "data": data or {},
        }
        logger.debug("WS -> user_%s: %s", recipient_id, payload)
        async_to_sync(channel_layer.group_send)(user_group(recipient_id), payload)

    return notification


def notify_safely(recipient_id: int, title: str, body: str, **kwargs) -> Optional[Notification]:
    """send_notification that logs and swallows any failure."""
    try:
        return send_notification(recipient_id, title, body, **kwargs)
    except Exception:
        logger.exception("Failed to notify user %s (%s)", recipient_id, title)
        return None


def notify_on_commit(recipient_id: int, title: str, body: str, **kwargs):
    """Queue a best-effort notification to run after the current transaction commits."""
    transaction.on_commit(lambda: notify_safely(recipient_id, title, body, **kwargs))


# ---------------------- Typed Notifications ----------------------

def send_attendance_notification(parent_id: int, driver_id: int, child_id, child_name: str, status: str):
    present = status == "picked_up"
    title = "Child Picked Up" if present else "Child Absent"
    body = (
        f"{child_name} has been safely picked up by the driver."
        if present else
        f"{child_name} was marked as absent and not picked up."
    )
    return notify_safely(
        parent_id, title, body,
        notification_type="attendance",
        sender_id=driver_id,
        data={
            "child_id": child_id,
            "child_name": child_name,
            "status": "present" if present else "absent",
            "timestamp": timezone.now().isoformat(),
        },
    )


def send_trip_end_notification(parent_id: int, driver_id: int, ride_id: int, child_name: str):
    return notify_safely(
        parent_id,
        "Trip Completed",
        f"{child_name}'s trip has been completed successfully.",
        notification_type="trip_end",
        sender_id=driver_id,
        data={
            "ride_id": ride_id,
            "child_name": child_name,
            "timestamp": timezone.now().isoformat(),
        },
    )


def send_emergency_notifications(parent_ids: Iterable[int], driver_id: int, driver_name: str, ride_id: int,
                                 location: Optional[Dict[str, Any]] = None) -> int:
    """Alert every parent in a ride. Returns how many were notified."""
    sent = 0
    for parent_id in parent_ids:
        notification = notify_safely(
            parent_id,
            "EMERGENCY SOS ALERT",
            f"Driver {driver_name} has triggered an emergency alert during your child's ride. "
            "We will update you as soon as possible.",
            notification_type="emergency_sos",
            sender_id=driver_id,
            data={
                "ride_id": ride_id,
                "driver_id": driver_id,
                "location": location,
                "timestamp": timezone.now().isoformat(),
            },
        )
        if notification is not None:
            sent += 1
    return sent


def send_ride_cancellation_notification(parent_id: int, driver_id: int, ride_date, reason: str = ""):
    body = f"Your child's ride on {ride_date.isoformat()} has been cancelled by the driver."
    if reason:
        body += f" Reason: {reason}"
    return notify_safely(
        parent_id,
        "Ride Cancelled",
        body,
        notification_type="ride_cancellation",
        sender_id=driver_id,
        data={"date": ride_date.isoformat(), "reason": reason},
    )


def send_approval_notification(driver_id: int, approved: bool, admin_id: Optional[int] = None):
    title = "Driver Account Approved" if approved else "Driver Account Rejected"
    body = (
        "Your driver profile has been approved. Parents can now book you."
        if approved else
        "Your driver profile was not approved. Please review your details."
    )
    return notify_safely(
        driver_id, title, body,
        notification_type="approval",
        sender_id=admin_id,
        data={"approved": approved},
    )


def send_booking_notification(recipient_id: int, booking, title: str, body: str, sender_id: Optional[int] = None):
    return notify_safely(
        recipient_id, title, body,
        notification_type="booking",
        sender_id=sender_id,
        data={"booking_id": booking.id, "status": booking.status},
    )


def send_payment_notification(recipient_id: int, payment, title: str, body: str, extra: Optional[Dict[str, Any]] = None):
    data = {
        "payment_id": payment.id,
        "booking_id": payment.booking_id,
        "status": payment.status,
        "remaining_amount": str(payment.remaining_amount),
        "balance_due_date": payment.balance_due_date.isoformat(),
    }
    data.update(extra or {})
    return notify_safely(recipient_id, title, body, notification_type="payment", data=data)
