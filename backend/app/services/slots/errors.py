# backend/app/services/slots/errors.py
"""
Errors raised by the slot engine.

Each error carries the HTTP status the API answers with.
"""


class SlotError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class RuleNotFound(SlotError):
    """No week definition or reservation rule is effective for a date."""
    status_code = 404


class InvalidPeriod(SlotError):
    status_code = 422


class InvalidSeatCount(SlotError):
    status_code = 422


class OverbookedSlot(SlotError):
    status_code = 409


class ConcurrentModification(SlotError):
    """Optimistic-lock conflict on a slot write. Retry the whole mutation."""
    status_code = 409


class SlotNotFound(SlotError):
    status_code = 404


class AppointmentNotFound(SlotError):
    status_code = 404


class OpenSlotsOnClosingDay(SlotError):
    status_code = 409


class SlotClosed(SlotError):
    """Booking on a slot that does not accept appointments."""
    status_code = 409


class BookingRuleViolation(SlotError):
    """An appointment breaks a limit of the reservation rule (advance time, per-user caps)."""
    status_code = 422
