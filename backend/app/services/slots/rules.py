# backend/app/services/slots/rules.py
"""
Rule resolution: which week definition and reservation rule apply to a day.

Both rule families are versioned by their effective date and resolved
independently: the rule applying to a day is the one with the greatest
effective date <= that day.
"""

from bisect import bisect_right
from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence, TypeVar

from .errors import InvalidPeriod
from .types import DayRules, ReservationRule, TimeSlotTemplate, WeekDefinition

T = TypeVar("T", WeekDefinition, ReservationRule)


def closest_in_past(rules: Sequence[T], keys: Sequence[date], target: date) -> T | None:
    """Rule with the greatest effective date <= target. keys must be sorted."""
    index = bisect_right(keys, target)
    if index == 0:
        return None
    return rules[index - 1]


class RuleResolver:
    """
    Immutable rule snapshot of one form.

    Built once per operation so every caller agrees on what a day looks like.
    """

    def __init__(
        self,
        form_id: int,
        week_definitions: Iterable[WeekDefinition] = (),
        reservation_rules: Iterable[ReservationRule] = (),
        closing_days: Iterable[date] = (),
    ):
        self.form_id = form_id
        self._week_definitions = sorted(week_definitions, key=lambda w: w.effective_from)
        self._week_keys = [w.effective_from for w in self._week_definitions]
        self._reservation_rules = sorted(reservation_rules, key=lambda r: r.effective_from)
        self._rule_keys = [r.effective_from for r in self._reservation_rules]
        self._closing_days = frozenset(closing_days)

    @classmethod
    def load(cls, repository, form_id: int) -> "RuleResolver":
        """Snapshot every rule of a form from a RuleRepository."""
        return cls(
            form_id,
            week_definitions=repository.find_week_definitions(form_id),
            reservation_rules=repository.find_reservation_rules(form_id),
            closing_days=repository.find_closing_days(form_id),
        )

    @property
    def first_effective_date(self) -> date | None:
        """Earliest reservation rule date; nothing is bookable before it."""
        return self._rule_keys[0] if self._rule_keys else None

    def week_definition_for(self, target_date: date) -> WeekDefinition | None:
        return closest_in_past(self._week_definitions, self._week_keys, target_date)

    def reservation_rule_for(self, target_date: date) -> ReservationRule | None:
        return closest_in_past(self._reservation_rules, self._rule_keys, target_date)

    def is_closing_day(self, target_date: date) -> bool:
        return target_date in self._closing_days

    def resolve_for_date(self, target_date: date) -> DayRules:
        return DayRules(
            day=target_date,
            week_definition=self.week_definition_for(target_date),
            reservation_rule=self.reservation_rule_for(target_date),
            is_closing_day=self.is_closing_day(target_date),
        )


def build_templates(
    opening: time,
    closing: time,
    duration_minutes: int,
    is_open: bool = True,
    max_capacity: int = 0,
) -> tuple[TimeSlotTemplate, ...]:
    """
    Contiguous templates from opening to closing, duration_minutes each.

    A remainder shorter than the duration becomes a shorter last template.
    """
    if duration_minutes <= 0:
        raise InvalidPeriod(f"Slot duration must be positive, got {duration_minutes}")
    if opening >= closing:
        raise InvalidPeriod(f"Opening {opening} must be before closing {closing}")

    anchor = date.min
    current = datetime.combine(anchor, opening)
    end = datetime.combine(anchor, closing)
    step = timedelta(minutes=duration_minutes)

    templates = []
    while current < end:
        following = min(current + step, end)
        templates.append(
            TimeSlotTemplate(
                starting_time=current.time(),
                ending_time=following.time(),
                is_open=is_open,
                max_capacity=max_capacity,
            )
        )
        current = following
    return tuple(templates)
