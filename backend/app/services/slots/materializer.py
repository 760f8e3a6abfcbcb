# backend/app/services/slots/materializer.py
"""
Slot materialization.

Turns the rules of a form into concrete slots over a date range, merged
with the slots already stored:

  resolve day → expand templates (or closed fill) → reuse stored slots

Slots computed here have id == 0 and are never written; stored slots win
over templates at the same starting instant since they may have been edited.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Iterator

from .rules import RuleResolver
from .types import DayRules, Period, Slot, WorkingDay

logger = logging.getLogger(__name__)


def iter_dates(start_date: date, end_date: date) -> Iterator[date]:
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def is_specific_slot(slot: Slot, rules: DayRules) -> bool:
    """
    True when no template of the slot's day has the slot's exact shape.

    Shape is (start, end, open flag, capacity); a template capacity of 0
    stands for the reservation rule capacity. On a weekly-closed day the
    reference is a closed slot at the rule capacity.
    """
    if rules.reservation_rule is None:
        return True

    working_day = rules.working_day
    if working_day is None or not working_day.templates:
        return slot.is_open or slot.max_capacity != rules.default_capacity

    for template in working_day.templates:
        if (
            template.starting_time == slot.starting_time
            and template.ending_time == slot.ending_time
            and template.is_open == slot.is_open
            and (template.max_capacity or rules.default_capacity) == slot.max_capacity
        ):
            return False
    return True


def generate_slots_after(start: datetime, form_id: int, rules: DayRules) -> list[Slot]:
    """
    Closed default-capacity slots from start to the end of its day.

    Steps by the shortest template duration; the last slot is cut at the
    closing time.
    """
    day_end = rules.day_end
    step = rules.step_minutes
    if day_end is None or not step:
        return []

    slots = []
    current = start
    while current < day_end:
        following = min(current + timedelta(minutes=step), day_end)
        slot = Slot.build(form_id, Period(current, following), rules.default_capacity, is_open=False)
        slots.append(replace(slot, is_specific=is_specific_slot(slot, rules)))
        current = following
    return slots


class SlotMaterializer:
    def __init__(self, resolver: RuleResolver, repository):
        self.resolver = resolver
        self.repository = repository

    @property
    def form_id(self) -> int:
        return self.resolver.form_id

    def materialize(self, start_date: date, end_date: date) -> Iterator[Slot]:
        """
        Slots of [start_date, end_date], ascending, grouped by day.

        Lazy: stored slots are fetched when iteration starts. Days before
        the first reservation rule yield nothing.
        """
        first_date = self.resolver.first_effective_date
        if first_date is None:
            logger.debug(f"Form {self.form_id} has no reservation rule, no slots")
            return
        start_date = max(start_date, first_date)
        if start_date > end_date:
            return

        stored = self._stored_by_start(start_date, end_date)
        for day in iter_dates(start_date, end_date):
            yield from self.build_day(self.resolver.resolve_for_date(day), stored)

    def materialize_day(self, day: date) -> list[Slot]:
        return list(self.materialize(day, day))

    def build_day(self, rules: DayRules, stored: dict[datetime, Slot]) -> list[Slot]:
        if rules.week_definition is None or rules.reservation_rule is None:
            logger.debug(f"No rules for form {self.form_id} on {rules.day}")
            return []

        working_day = rules.working_day
        if working_day is None or not working_day.templates:
            return list(self._closed_day(rules, stored))
        if rules.is_closing_day:
            return [self._closing_day_slot(rules)]
        return list(self._working_day(rules, working_day, stored))

    # ── Day builders ─────────────────────────────────────────────────────

    def _working_day(
        self,
        rules: DayRules,
        working_day: WorkingDay,
        stored: dict[datetime, Slot],
    ) -> Iterator[Slot]:
        current = rules.day_start
        day_end = rules.day_end
        while current < day_end:
            existing = stored.get(current)
            if existing is not None:
                yield existing
                current = existing.ending_date_time
                continue

            template = working_day.template_starting_at(current.time())
            if template is None:
                # Nothing defined from here on
                break
            following = datetime.combine(rules.day, template.ending_time)
            capacity = template.max_capacity or rules.default_capacity
            yield Slot.build(self.form_id, Period(current, following), capacity, template.is_open)
            current = following

    def _closed_day(self, rules: DayRules, stored: dict[datetime, Slot]) -> Iterator[Slot]:
        current = rules.day_start
        day_end = rules.day_end
        step = rules.step_minutes
        if current is None or day_end is None or not step:
            return

        while current < day_end:
            existing = stored.get(current)
            if existing is not None:
                yield existing
                current = existing.ending_date_time
                continue

            following = min(current + timedelta(minutes=step), day_end)
            yield Slot.build(self.form_id, Period(current, following), rules.default_capacity, is_open=False)
            current = following

    def _closing_day_slot(self, rules: DayRules) -> Slot:
        return Slot.build(
            self.form_id,
            Period(rules.day_start, rules.day_end),
            rules.default_capacity,
            is_open=False,
        )

    def _stored_by_start(self, start_date: date, end_date: date) -> dict[datetime, Slot]:
        slots = self.repository.find_by_date_range(
            self.form_id,
            datetime.combine(start_date, time.min),
            datetime.combine(end_date, time.max),
        )
        return {slot.starting_date_time: slot for slot in slots}
