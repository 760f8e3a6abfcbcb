# backend/app/services/slots/mutator.py
"""
Editing a single slot.

An edit works on one "anchor" slot:

  capacity / open flag only  → reconcile counters, save
  new ending time, no shift  → absorb what the new span covers, fill the gap
                               up to the next slot boundary
  new ending time, shift     → move every later slot of the day by the delta,
                               deleting what falls past the end of the day

The anchor is always saved before any later slot is touched. All writes of
an edit share one transaction: a conflict on any of them (the anchor changed
since it was read, a colliding slot) rolls the whole edit back, deletions
included. Listeners hear about the edit only once it is committed.
"""

import logging
from dataclasses import replace
from datetime import datetime, time, timedelta

from .errors import InvalidPeriod, SlotNotFound
from .ledger import reconcile_capacity_change
from .listeners import NullSlotListener, SlotListener, notify
from .materializer import SlotMaterializer, generate_slots_after, is_specific_slot
from .rules import RuleResolver
from .types import DayRules, Period, Slot

logger = logging.getLogger(__name__)


class SlotMutator:
    def __init__(
        self,
        resolver: RuleResolver,
        repository,
        listener: SlotListener | None = None,
    ):
        self.resolver = resolver
        self.repository = repository
        self.listener = listener or NullSlotListener()
        self.materializer = SlotMaterializer(resolver, repository)
        self._pending: list[tuple[str, Slot]] = []

    def edit_slot(
        self,
        slot: Slot,
        ending_time_changed: bool,
        previous_ending_time: time | None = None,
        shift: bool = False,
    ) -> Slot:
        """Save an edited slot and rearrange its day. Returns the saved anchor."""
        self._pending = []
        try:
            saved = self._edit(slot, ending_time_changed, previous_ending_time, shift)
            self.repository.commit()
        except Exception:
            self.repository.rollback()
            raise

        for event, changed in self._pending:
            notify(self.listener, event, changed)
        self._pending = []
        return saved

    def _edit(
        self,
        slot: Slot,
        ending_time_changed: bool,
        previous_ending_time: time | None,
        shift: bool,
    ) -> Slot:
        _check_span(slot.starting_date_time, slot.ending_date_time)
        rules = self.resolver.resolve_for_date(slot.date)
        anchor = self._prepare_anchor(slot, rules)

        if not ending_time_changed:
            return self._save(anchor)

        if previous_ending_time is None:
            raise InvalidPeriod("previous_ending_time is required when the ending time changes")
        if previous_ending_time == anchor.ending_time:
            return self._save(anchor)

        if shift:
            return self._edit_with_shift(anchor, rules, previous_ending_time)
        return self._edit_without_shift(anchor, rules)

    # ── Anchor ───────────────────────────────────────────────────────────

    def _prepare_anchor(self, slot: Slot, rules: DayRules) -> Slot:
        if slot.is_persisted:
            stored = self.repository.get(slot.id)
            if stored is None:
                raise SlotNotFound(f"Slot {slot.id} not found")
            anchor = replace(
                stored,
                ending_date_time=slot.ending_date_time,
                is_open=slot.is_open,
            )
            _check_span(anchor.starting_date_time, anchor.ending_date_time)
            reconcile_capacity_change(stored.max_capacity, slot.max_capacity, anchor)
        else:
            anchor = Slot.build(slot.form_id, slot.period, slot.max_capacity, slot.is_open)
        anchor.is_specific = is_specific_slot(anchor, rules)
        return anchor

    # ── No shift ─────────────────────────────────────────────────────────

    def _edit_without_shift(self, anchor: Slot, rules: DayRules) -> Slot:
        new_end = anchor.ending_date_time

        covered = [
            s for s in self.repository.find_by_date_range(anchor.form_id, anchor.starting_date_time, new_end)
            if s.id != anchor.id and anchor.starting_date_time < s.starting_date_time < new_end
        ]
        for stored in covered:
            self._delete(stored)

        boundary = self._next_boundary(anchor, rules)
        saved = self._save(anchor)
        if boundary is not None and boundary > new_end:
            self._create_filler(anchor, boundary, rules)
        return saved

    def _next_boundary(self, anchor: Slot, rules: DayRules) -> datetime | None:
        """Where the slot following the anchor starts, if anything follows it."""
        end_of_day = datetime.combine(anchor.date, time.max)
        following = [
            s for s in self.repository.find_by_date_range(anchor.form_id, anchor.ending_date_time, end_of_day)
            if s.id != anchor.id
        ]
        if following:
            return min(s.starting_date_time for s in following)

        working_day = rules.working_day
        if working_day is None or not working_day.templates:
            # Weekly-closed day: the next materialization fills the rest
            return None
        template = working_day.next_template_after(anchor.ending_time)
        if template is None:
            return None
        return datetime.combine(anchor.date, template.starting_time)

    def _create_filler(self, anchor: Slot, boundary: datetime, rules: DayRules) -> Slot:
        capacity = rules.default_capacity if rules.reservation_rule else anchor.max_capacity
        filler = Slot.build(
            anchor.form_id,
            Period(anchor.ending_date_time, boundary),
            capacity,
            is_open=False,
            is_specific=True,
        )
        return self._save(filler)

    # ── Shift ────────────────────────────────────────────────────────────

    def _edit_with_shift(self, anchor: Slot, rules: DayRules, previous_ending_time: time) -> Slot:
        previous_end = datetime.combine(anchor.date, previous_ending_time)
        new_end = anchor.ending_date_time

        following = [
            s for s in self.materializer.materialize_day(anchor.date)
            if s.starting_date_time > anchor.starting_date_time
        ]
        absorbed = [s for s in following if s.is_persisted and s.ending_date_time <= new_end]
        for stored in absorbed:
            self._delete(stored)
        absorbed_ids = {s.id for s in absorbed}
        to_shift = sorted(
            (s for s in following if not (s.is_persisted and s.id in absorbed_ids)),
            key=lambda s: s.starting_date_time,
        )

        day_end = rules.day_end
        if new_end > previous_end:
            if to_shift:
                time_to_add = max(new_end - to_shift[0].starting_date_time, timedelta(0))
            else:
                time_to_add = new_end - previous_end
            saved = self._save(anchor)
            if to_shift and day_end is not None:
                self._shift_later(to_shift, time_to_add, day_end, rules)
                if time_to_add == timedelta(0) and to_shift[0].starting_date_time > new_end:
                    self._create_filler(anchor, to_shift[0].starting_date_time, rules)
            return saved

        time_to_subtract = previous_end - new_end
        logger.debug(f"Moving {len(to_shift)} slot(s) of {anchor.date} earlier by {time_to_subtract}")
        saved = self._save(anchor)
        refill_from = new_end
        for slot in to_shift:
            moved = self._moved(slot, slot.starting_date_time - time_to_subtract,
                                slot.ending_date_time - time_to_subtract, rules)
            self._save(moved)
            refill_from = moved.ending_date_time
        if day_end is not None:
            for filler in generate_slots_after(refill_from, anchor.form_id, rules):
                self._save(filler)
        return saved

    def _shift_later(
        self,
        to_shift: list[Slot],
        time_to_add: timedelta,
        day_end: datetime,
        rules: DayRules,
    ) -> None:
        if time_to_add == timedelta(0):
            return

        plan: list[tuple[Slot, Slot | None]] = []
        for slot in to_shift:
            start = slot.starting_date_time + time_to_add
            if start >= day_end:
                # Would leave the day: dropped, never pushed past the boundary
                plan.append((slot, None))
                continue
            end = min(slot.ending_date_time + time_to_add, day_end)
            plan.append((slot, self._moved(slot, start, end, rules)))

        # Last slot first so no write collides with a slot not yet moved
        for slot, moved in reversed(plan):
            if moved is None:
                if slot.is_persisted:
                    self._delete(slot)
                    logger.info(f"Slot {slot.id} pushed past {day_end.time()} by the shift, removed")
            else:
                self._save(moved)

    def _moved(self, slot: Slot, start: datetime, end: datetime, rules: DayRules) -> Slot:
        moved = replace(slot, starting_date_time=start, ending_date_time=end)
        moved.is_specific = is_specific_slot(moved, rules)
        return moved

    # ── Persistence ──────────────────────────────────────────────────────

    def _save(self, slot: Slot) -> Slot:
        if slot.is_persisted:
            saved = self.repository.update(slot, commit=False)
            self._pending.append(("slot_updated", saved))
        else:
            saved = self.repository.create(slot, commit=False)
            self._pending.append(("slot_created", saved))
        return saved

    def _delete(self, slot: Slot) -> None:
        self.repository.delete(slot, commit=False)
        self._pending.append(("slot_removed", slot))


def _check_span(start: datetime, end: datetime) -> None:
    if start >= end:
        raise InvalidPeriod(f"Slot start {start} must be before its end {end}")
    if start.date() != end.date():
        raise InvalidPeriod(f"Slot {start} - {end} crosses a day boundary")
