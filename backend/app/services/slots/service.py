# backend/app/services/slots/service.py
"""
Entry point of the slot engine.

SlotService wires the repositories, the rule snapshot and the listener for
one request. It holds no state of its own between calls.
"""

import logging
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from .config import BookingConfig, get_booking_config
from .errors import InvalidPeriod, RuleNotFound, SlotNotFound
from .ledger import CapacityLedger, LedgerResult
from .listeners import NullSlotListener, SlotListener, notify
from .materializer import SlotMaterializer
from .mutator import SlotMutator
from .repository import RuleRepository, SlotRepository
from .rules import RuleResolver
from .types import Slot

logger = logging.getLogger(__name__)


class SlotService:
    def __init__(
        self,
        db: Session,
        listener: SlotListener | None = None,
        config: BookingConfig | None = None,
    ):
        self.db = db
        self.listener = listener or NullSlotListener()
        self.config = config or get_booking_config()
        self.slots = SlotRepository(db)
        self.rules = RuleRepository(db)
        self.ledger = CapacityLedger(self.slots, max_retries=self.config.max_write_retries)

    def resolver(self, form_id: int) -> RuleResolver:
        return RuleResolver.load(self.rules, form_id)

    # ── Reading ──────────────────────────────────────────────────────────

    def get_slots(self, form_id: int, start_date: date, end_date: date) -> list[Slot]:
        """Stored and computed slots of a form over [start_date, end_date]."""
        if end_date < start_date:
            raise InvalidPeriod(f"Range start {start_date} is after its end {end_date}")
        if (end_date - start_date).days + 1 > self.config.max_range_days:
            raise InvalidPeriod(
                f"Range {start_date} - {end_date} is longer than {self.config.max_range_days} days"
            )
        materializer = SlotMaterializer(self.resolver(form_id), self.slots)
        return list(materializer.materialize(start_date, end_date))

    def get_slot(self, slot_id: int) -> Slot | None:
        return self.slots.get(slot_id)

    def find_specific_slots(self, form_id: int) -> list[Slot]:
        return self.slots.find_specific(form_id)

    def find_open_slots(self, form_id: int, start: datetime, end: datetime) -> list[Slot]:
        return self.slots.find_open_by_date_range(form_id, start, end)

    def find_slot_with_max_date(self, form_id: int) -> Slot | None:
        return self.slots.find_with_max_date(form_id)

    # ── Writing ──────────────────────────────────────────────────────────

    def edit_slot(
        self,
        slot: Slot,
        ending_time_changed: bool,
        previous_ending_time: time | None = None,
        shift: bool = False,
    ) -> Slot:
        mutator = SlotMutator(self.resolver(slot.form_id), self.slots, self.listener)
        saved = mutator.edit_slot(slot, ending_time_changed, previous_ending_time, shift)
        logger.info(
            f"Slot {saved.id} of form {saved.form_id} edited "
            f"(ending time changed={ending_time_changed}, shift={shift})"
        )
        return saved

    def persist_slot(self, form_id: int, starting_date_time: datetime) -> Slot:
        """
        The stored slot starting at starting_date_time.

        A computed slot is written first so appointments can reference it.
        """
        stored = self.slots.find_by_starting_date_time(form_id, starting_date_time)
        if stored is not None:
            return stored

        resolver = self.resolver(form_id)
        day = starting_date_time.date()
        if resolver.reservation_rule_for(day) is None:
            raise RuleNotFound(f"Form {form_id} has no reservation rule on {day}")

        materializer = SlotMaterializer(resolver, self.slots)
        for slot in materializer.materialize_day(day):
            if slot.starting_date_time == starting_date_time:
                created = self.slots.create(slot)
                notify(self.listener, "slot_created", created)
                return created
        raise SlotNotFound(f"Form {form_id} has no slot starting at {starting_date_time}")

    def book_seats(self, slot_id: int, nb_seats: int) -> LedgerResult:
        result = self.ledger.book(slot_id, nb_seats)
        notify(self.listener, "slot_updated", result.slot)
        return result

    def release_seats(self, slot_id: int, nb_seats: int) -> LedgerResult:
        result = self.ledger.release(slot_id, nb_seats)
        notify(self.listener, "slot_updated", result.slot)
        return result


def default_range(config: BookingConfig, start_date: date | None, end_date: date | None) -> tuple[date, date]:
    """Fill a missing range bound: today, and start + horizon_days."""
    if start_date is None:
        start_date = date.today()
    if end_date is None:
        end_date = start_date + timedelta(days=config.horizon_days)
    return start_date, end_date
