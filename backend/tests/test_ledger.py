from datetime import datetime
from unittest.mock import Mock

import pytest

from app.services.slots import (
    CapacityLedger,
    ConcurrentModification,
    InvalidSeatCount,
    OverbookedSlot,
    Period,
    Slot,
    SlotClosed,
    SlotNotFound,
    apply_booking,
    reconcile_capacity_change,
    release_booking,
)

PERIOD = Period(datetime(2024, 1, 8, 9), datetime(2024, 1, 8, 9, 30))


def _slot(capacity: int, is_open: bool = True, slot_id: int = 1) -> Slot:
    slot = Slot.build(1, PERIOD, capacity, is_open)
    slot.id = slot_id
    return slot


def _counters(slot: Slot) -> tuple[int, int, int]:
    return slot.nb_places_taken, slot.nb_remaining_places, slot.nb_potential_remaining_places


class TestCounters:
    def test_fresh_slot(self):
        assert _counters(_slot(3)) == (0, 3, 3)

    def test_single_seat_fills_capacity_one(self):
        assert _counters(apply_booking(_slot(1), 1)) == (1, 0, 0)

    def test_single_seat_on_capacity_two(self):
        assert _counters(apply_booking(_slot(2), 1)) == (1, 1, 1)

    def test_two_appointments_then_cancel_one(self):
        slot = _slot(3)
        apply_booking(slot, 2)
        apply_booking(slot, 1)
        assert _counters(slot) == (3, 0, 0)

        release_booking(slot, 2)
        assert _counters(slot) == (1, 2, 2)

    def test_book_then_release_restores(self):
        slot = _slot(4)
        apply_booking(slot, 3)
        release_booking(slot, 3)

        assert _counters(slot) == (0, 4, 4)

    @pytest.mark.parametrize("seats", [0, -1])
    def test_non_positive_seats(self, seats):
        with pytest.raises(InvalidSeatCount):
            apply_booking(_slot(2), seats)

    def test_release_more_than_taken(self):
        slot = apply_booking(_slot(2), 1)

        with pytest.raises(InvalidSeatCount):
            release_booking(slot, 2)


class TestCapacityChange:
    def test_increase_adds_delta(self):
        slot = apply_booking(_slot(2), 1)

        reconcile_capacity_change(2, 4, slot)

        assert slot.max_capacity == 4
        assert _counters(slot) == (1, 3, 3)

    def test_decrease_floors_at_zero(self, caplog):
        slot = apply_booking(_slot(3), 2)

        with caplog.at_level("WARNING"):
            reconcile_capacity_change(3, 1, slot)

        assert _counters(slot) == (2, 0, 0)
        assert slot.is_overbooked
        assert "over-booked" in caplog.text

    def test_release_on_overbooked_slot_stays_within_capacity(self):
        slot = apply_booking(_slot(3), 2)
        reconcile_capacity_change(3, 1, slot)

        release_booking(slot, 1)
        assert _counters(slot) == (1, 0, 0)
        assert not slot.is_overbooked

        release_booking(slot, 1)
        assert _counters(slot) == (0, 1, 1)


class TestCapacityLedger:
    def _repository(self, **slot_kwargs):
        repository = Mock()
        # A fresh read on every attempt, as from the database
        repository.get.side_effect = lambda slot_id: _slot(**slot_kwargs)
        repository.update.side_effect = lambda slot: slot
        return repository

    def test_book(self):
        ledger = CapacityLedger(self._repository(capacity=2))

        result = ledger.book(1, 1)

        assert _counters(result.slot) == (1, 1, 1)
        assert not result.overbooked

    def test_book_closed_slot(self):
        ledger = CapacityLedger(self._repository(capacity=2, is_open=False))

        with pytest.raises(SlotClosed):
            ledger.book(1, 1)

    def test_book_over_remaining(self):
        repository = self._repository(capacity=2)
        ledger = CapacityLedger(repository)

        with pytest.raises(OverbookedSlot):
            ledger.book(1, 3)
        repository.update.assert_not_called()

    def test_book_after_capacity_decrease_then_increase(self):
        def _reread(slot_id):
            slot = apply_booking(_slot(2), 2)
            reconcile_capacity_change(2, 1, slot)
            reconcile_capacity_change(1, 2, slot)
            return slot

        repository = Mock()
        repository.get.side_effect = _reread

        # One place looks free but the capacity is already used up
        assert _counters(_reread(1)) == (2, 1, 1)
        with pytest.raises(OverbookedSlot):
            CapacityLedger(repository).book(1, 1)
        repository.update.assert_not_called()

    def test_missing_slot(self):
        repository = Mock()
        repository.get.return_value = None

        with pytest.raises(SlotNotFound):
            CapacityLedger(repository).release(1, 1)

    def test_conflict_is_retried(self):
        repository = self._repository(capacity=2)
        attempts = []

        def update(slot):
            attempts.append(slot)
            if len(attempts) == 1:
                raise ConcurrentModification("busy")
            return slot

        repository.update.side_effect = update

        result = CapacityLedger(repository).book(1, 1)

        assert len(attempts) == 2
        assert repository.get.call_count == 2
        assert _counters(result.slot) == (1, 1, 1)

    def test_conflict_reported_after_max_retries(self):
        repository = self._repository(capacity=2)
        repository.update.side_effect = ConcurrentModification("busy")

        with pytest.raises(ConcurrentModification):
            CapacityLedger(repository, max_retries=3).book(1, 1)
        assert repository.update.call_count == 3

    def test_reconcile(self):
        result = CapacityLedger(self._repository(capacity=2)).reconcile(1, 5)

        assert result.slot.max_capacity == 5
        assert _counters(result.slot) == (0, 5, 5)
