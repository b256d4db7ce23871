"""Participant checks shared by the consumers and the ride services."""

from django.db.models import Q


def is_ride_participant(ride, user_id: int) -> bool:
    """True for the ride's driver and for parents of children on the ride."""
    if ride.driver_id == user_id:
        return True
    return ride.children.filter(
        Q(booking__parent_id=user_id) | Q(child__parent_id=user_id)
    ).exists()


def ride_parent_ids(ride):
    """Distinct parent IDs for the children on a ride, in ride order."""
    parent_ids = []
    for ride_child in ride.children.select_related('booking', 'child'):
        parent_id = None
        if ride_child.booking_id and ride_child.booking:
            parent_id = ride_child.booking.parent_id
        elif ride_child.child_id and ride_child.child:
            parent_id = ride_child.child.parent_id
        if parent_id is not None and parent_id not in parent_ids:
            parent_ids.append(parent_id)
    return parent_ids
