"""
Errors raised by the reservation core.

The HTTP layer in app.py maps these to status codes; the core itself never
logs or swallows them.
"""


class ReservationSystemError(Exception):
    """Base class for every error the core surfaces to its callers"""


class NotFound(ReservationSystemError):
    """A referenced reservation, item or item type does not exist"""

    def __init__(self, kind, record_id):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class ValidationError(ReservationSystemError):
    """
    One or more business-rule violations.

    `messages` is the full, caller-visible list; the change that triggered
    it has not been applied.
    """

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__('; '.join(self.messages))


class Conflict(ReservationSystemError):
    """A booking lost the race against a concurrent overlapping reservation"""

    def __init__(self, item_id):
        self.item_id = item_id
        super().__init__(f"Item {item_id} was reserved concurrently")
