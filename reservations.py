"""
Reservation lifecycle: book, relocate, cancel and look up reservations.

Every check-then-write on an item's reservations runs inside locked_item(),
which holds a per-item process lock plus a SELECT ... FOR UPDATE on the item
row until the transaction ends. That keeps two bookers from both seeing the
same slot as free, whether they share a process (threads, SQLite) or not
(PostgreSQL row locks). Items never share a lock, so different items book in
parallel.
"""
import logging
import threading
from contextlib import contextmanager

from flask import current_app

from models import db, Item, Reservation, to_utc
from availability import find_available, overlapping_reservations
from errors import NotFound, ValidationError, Conflict
from constants import MAX_BOOKING_ATTEMPTS, START_BEFORE_END_MESSAGE, OVERLAP_MESSAGE

logger = logging.getLogger(__name__)


class ItemLocks:
    """
    Process-wide registry of one mutex per item id.

    Entries are never dropped, so the registry holds one lock per item ever
    locked. Fleets are small enough for that to stay negligible.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    def get(self, item_id):
        with self._guard:
            lock = self._locks.get(item_id)
            if lock is None:
                lock = self._locks[item_id] = threading.Lock()
            return lock


item_locks = ItemLocks()


@contextmanager
def locked_item(item_id):
    """
    Hold item_id's lock for the duration of a transaction.

    Yields the item row re-read with FOR UPDATE. Any exception rolls the
    session back before the lock is released and is then re-raised.
    """
    with item_locks.get(item_id):
        try:
            # populate_existing: rows loaded before the lock may be stale
            item = Item.query.with_for_update().populate_existing().filter_by(id=item_id).first()
            if item is None:
                raise NotFound('Item', item_id)
            yield item
        except Exception:
            db.session.rollback()
            raise


def _validate_interval(start, end):
    if start is None or end is None or not start < end:
        raise ValidationError([START_BEFORE_END_MESSAGE])


def create_reservation(item, start, end):
    """
    Reserve item for [start, end).

    The overlap check is repeated under the item lock, so a slot taken since
    the caller picked this item raises Conflict instead of double booking.
    """
    start, end = to_utc(start), to_utc(end)
    _validate_interval(start, end)
    item_id = item.id

    with locked_item(item_id):
        if overlapping_reservations(item_id, start, end).first() is not None:
            raise Conflict(item_id)
        reservation = Reservation(item_id=item_id, start_time=start, end_time=end)
        db.session.add(reservation)
        db.session.commit()

    logger.info(f"Reservation {reservation.id} created on item {item_id} "
                f"({start.isoformat()} - {end.isoformat()})")
    return reservation


def reserve_available(item_type, start, end, attempts=None):
    """
    Pick the first free item of item_type and reserve it.

    A lost race means a fresh selection, up to `attempts` tries; the last
    Conflict is re-raised. Returns None when no item is free. Raises
    ValueError when attempts is below 1.
    """
    start, end = to_utc(start), to_utc(end)
    _validate_interval(start, end)
    if attempts is None:
        attempts = current_app.config.get('MAX_BOOKING_ATTEMPTS', MAX_BOOKING_ATTEMPTS)
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    for attempt in range(1, attempts + 1):
        item = find_available(item_type, start, end)
        if item is None:
            return None
        try:
            return create_reservation(item, start, end)
        except Conflict:
            if attempt >= attempts:
                raise
            logger.info(f"Lost race for item {item.id} ({item_type.name}), retrying selection "
                        f"(attempt {attempt}/{attempts})")
    return None


def get_reservation(reservation_id):
    reservation = db.session.get(Reservation, reservation_id)
    if reservation is None:
        raise NotFound('Reservation', reservation_id)
    return reservation


def relocate_reservation(reservation_id, start_time=None, end_time=None):
    """
    Move a reservation to a new time range. Either bound may be omitted.

    The new range must be ordered and clear of the item's *other*
    reservations; overlapping its own previous range is fine. On a
    ValidationError nothing is changed.
    """
    item_id = get_reservation(reservation_id).item_id

    with locked_item(item_id):
        reservation = db.session.get(Reservation, reservation_id, populate_existing=True)
        if reservation is None:
            raise NotFound('Reservation', reservation_id)

        start = to_utc(start_time) if start_time is not None else reservation.start_time
        end = to_utc(end_time) if end_time is not None else reservation.end_time

        if not start < end:
            raise ValidationError([START_BEFORE_END_MESSAGE])
        if overlapping_reservations(item_id, start, end, exclude_id=reservation.id).first() is not None:
            raise ValidationError([OVERLAP_MESSAGE])

        reservation.start_time = start
        reservation.end_time = end
        db.session.commit()

    logger.info(f"Reservation {reservation_id} moved to {start.isoformat()} - {end.isoformat()}")
    return reservation


def cancel_reservation(reservation_id):
    """Delete a reservation. A missing id is NotFound, including one already cancelled."""
    item_id = get_reservation(reservation_id).item_id

    with locked_item(item_id):
        reservation = db.session.get(Reservation, reservation_id, populate_existing=True)
        if reservation is None:
            raise NotFound('Reservation', reservation_id)
        db.session.delete(reservation)
        db.session.commit()

    logger.info(f"Reservation {reservation_id} cancelled")
    return True
