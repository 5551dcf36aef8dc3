"""
Availability lookups: which item of a type is free for a time range.

Intervals are half-open, [start, end), so a reservation ending at T and one
starting at T do not overlap.
"""
from models import Reservation, to_utc


def intervals_overlap(a_start, a_end, b_start, b_end):
    return a_start < b_end and b_start < a_end


def overlapping_reservations(item_id, start, end, exclude_id=None):
    """Query for reservations on item_id that overlap [start, end), optionally skipping one id"""
    query = Reservation.query.filter(
        Reservation.item_id == item_id,
        Reservation.start_time < to_utc(end),
        Reservation.end_time > to_utc(start),
    )
    if exclude_id is not None:
        query = query.filter(Reservation.id != exclude_id)
    return query


def is_available(item, start, end, exclude_id=None):
    return overlapping_reservations(item.id, start, end, exclude_id).first() is None


def find_available(item_type, start, end):
    """
    First item of item_type, in creation order, with nothing booked in [start, end).

    Read-only and unlocked: a concurrent booking may take the returned item
    before the caller reserves it, so create_reservation stays authoritative.
    Returns None when every item conflicts or the type has no items.
    """
    for item in item_type.items:
        if is_available(item, start, end):
            return item
    return None
