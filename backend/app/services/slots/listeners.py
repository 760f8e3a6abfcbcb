# backend/app/services/slots/listeners.py
"""
Slot lifecycle notifications.

Listeners are observers: a failing listener is logged and never aborts the
slot operation that triggered it.
"""

import logging
from typing import Protocol

from ..events import emit_event
from .types import Slot

logger = logging.getLogger(__name__)


class SlotListener(Protocol):
    def slot_created(self, slot: Slot) -> None: ...

    def slot_updated(self, slot: Slot) -> None: ...

    def slot_removed(self, slot: Slot) -> None: ...


class RedisSlotListener:
    """Publishes slot events on the Redis events queue."""

    def slot_created(self, slot: Slot) -> None:
        emit_event("slot_created", _payload(slot))

    def slot_updated(self, slot: Slot) -> None:
        emit_event("slot_updated", _payload(slot))

    def slot_removed(self, slot: Slot) -> None:
        emit_event("slot_removed", _payload(slot))


class NullSlotListener:
    def slot_created(self, slot: Slot) -> None:
        pass

    def slot_updated(self, slot: Slot) -> None:
        pass

    def slot_removed(self, slot: Slot) -> None:
        pass


def notify(listener: SlotListener, event: str, slot: Slot) -> None:
    """Call listener.<event>(slot), swallowing and logging its failures."""
    try:
        getattr(listener, event)(slot)
    except Exception:
        logger.exception(f"Slot listener failed on {event} for slot {slot.id}")


def _payload(slot: Slot) -> dict:
    return {
        "slot_id": slot.id,
        "form_id": slot.form_id,
        "starting_date_time": slot.starting_date_time.isoformat(),
        "ending_date_time": slot.ending_date_time.isoformat(),
    }
