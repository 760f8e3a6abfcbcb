# backend/app/services/slots/ledger.py
"""
Seat counters of a slot.

The three functions below are the only writers of nb_places_taken,
nb_remaining_places and nb_potential_remaining_places once a slot has been
built. nb_potential_remaining_places follows the same rules as
nb_remaining_places; it is kept as a separate counter for look-ahead checks.

CapacityLedger runs them as atomic read-modify-write cycles against the
persisted counters (optimistic version check, retried on conflict).
"""

import logging
from dataclasses import dataclass
from typing import Callable

from .errors import ConcurrentModification, InvalidSeatCount, OverbookedSlot, SlotClosed, SlotNotFound
from .types import Slot

logger = logging.getLogger(__name__)


def reconcile_capacity_change(old_max_capacity: int, new_max_capacity: int, slot: Slot) -> Slot:
    """
    Move the remaining counters by the capacity delta.

    Increases are added uncapped. Decreases are floored at 0, which may leave
    the slot over-booked (nb_places_taken > max_capacity); that is reported,
    not corrected.
    """
    delta = new_max_capacity - old_max_capacity
    if delta > 0:
        slot.nb_remaining_places += delta
        slot.nb_potential_remaining_places += delta
    elif delta < 0:
        slot.nb_remaining_places = max(0, slot.nb_remaining_places + delta)
        slot.nb_potential_remaining_places = max(0, slot.nb_potential_remaining_places + delta)
    slot.max_capacity = new_max_capacity

    if slot.is_overbooked:
        logger.warning(
            f"Slot {slot.id} of form {slot.form_id} at {slot.starting_date_time} is over-booked: "
            f"{slot.nb_places_taken} places taken for a capacity of {slot.max_capacity}"
        )
    return slot


def apply_booking(slot: Slot, nb_seats: int) -> Slot:
    """Take nb_seats. The caller has checked them against the remaining places."""
    _check_seats(nb_seats)
    slot.nb_places_taken += nb_seats
    slot.nb_remaining_places -= nb_seats
    slot.nb_potential_remaining_places -= nb_seats
    return slot


def release_booking(slot: Slot, nb_seats: int) -> Slot:
    """
    Give nb_seats back (cancellation or deletion of an appointment).

    Symmetric to apply_booking; the remaining counters never exceed what the
    capacity leaves free, which only matters for an over-booked slot.
    """
    _check_seats(nb_seats)
    if nb_seats > slot.nb_places_taken:
        raise InvalidSeatCount(
            f"Cannot release {nb_seats} seats from slot {slot.id}: "
            f"only {slot.nb_places_taken} taken"
        )
    slot.nb_places_taken -= nb_seats
    free = max(0, slot.max_capacity - slot.nb_places_taken)
    slot.nb_remaining_places = min(slot.nb_remaining_places + nb_seats, free)
    slot.nb_potential_remaining_places = min(slot.nb_potential_remaining_places + nb_seats, free)
    return slot


def _check_seats(nb_seats: int) -> None:
    if nb_seats <= 0:
        raise InvalidSeatCount(f"Number of seats must be positive, got {nb_seats}")


@dataclass(frozen=True)
class LedgerResult:
    slot: Slot

    @property
    def overbooked(self) -> bool:
        return self.slot.is_overbooked


class CapacityLedger:
    """Atomic counter updates on persisted slots."""

    def __init__(self, repository, max_retries: int = 3):
        self.repository = repository
        self.max_retries = max_retries

    def book(self, slot_id: int, nb_seats: int) -> LedgerResult:
        def _book(slot: Slot) -> None:
            if not slot.is_open:
                raise SlotClosed(f"Slot {slot.id} is closed")
            if nb_seats > slot.nb_remaining_places:
                raise OverbookedSlot(
                    f"Slot {slot.id} has {slot.nb_remaining_places} remaining places, "
                    f"{nb_seats} requested"
                )
            # Remaining places may exceed the free capacity after a decrease then an increase
            if slot.nb_places_taken + nb_seats > slot.max_capacity:
                raise OverbookedSlot(
                    f"Slot {slot.id} has {slot.nb_places_taken} of {slot.max_capacity} places taken, "
                    f"{nb_seats} requested"
                )
            apply_booking(slot, nb_seats)

        return self._update(slot_id, _book)

    def release(self, slot_id: int, nb_seats: int) -> LedgerResult:
        return self._update(slot_id, lambda slot: release_booking(slot, nb_seats))

    def reconcile(self, slot_id: int, new_max_capacity: int) -> LedgerResult:
        return self._update(
            slot_id,
            lambda slot: reconcile_capacity_change(slot.max_capacity, new_max_capacity, slot),
        )

    def _update(self, slot_id: int, change: Callable[[Slot], object]) -> LedgerResult:
        attempt = 0
        while True:
            attempt += 1
            slot = self.repository.get(slot_id)
            if slot is None:
                raise SlotNotFound(f"Slot {slot_id} not found")
            change(slot)
            try:
                saved = self.repository.update(slot)
            except ConcurrentModification:
                if attempt >= self.max_retries:
                    raise
                logger.warning(f"Slot {slot_id} changed concurrently, retrying ({attempt}/{self.max_retries})")
                continue
            return LedgerResult(saved)
