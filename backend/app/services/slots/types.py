# backend/app/services/slots/types.py
"""
Domain types of the slot engine.

Rules (templates, working days, week definitions, reservation rules) are
immutable snapshots loaded per operation. Slot is the only mutable type:
its seat counters are written by the ledger, its period by the mutator.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from .errors import InvalidPeriod


def minutes_between(start: time, end: time) -> int:
    """Length of [start, end) in minutes, both on the same day."""
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


@dataclass(frozen=True)
class Period:
    """Naive local [start, end) interval."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidPeriod(f"Period start {self.start} must be before end {self.end}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class TimeSlotTemplate:
    """
    Canonical shape of a non-edited slot of a working day.

    max_capacity == 0 means "use the reservation rule capacity".
    """
    starting_time: time
    ending_time: time
    is_open: bool = True
    max_capacity: int = 0

    def __post_init__(self):
        if self.starting_time >= self.ending_time:
            raise InvalidPeriod(
                f"Template start {self.starting_time} must be before end {self.ending_time}"
            )
        if self.max_capacity < 0:
            raise ValueError(f"max_capacity must be >= 0, got {self.max_capacity}")

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.starting_time, self.ending_time)


@dataclass(frozen=True)
class WorkingDay:
    """Templates of one day of week (0 = Monday), sorted and non-overlapping."""
    day_of_week: int
    templates: tuple[TimeSlotTemplate, ...] = ()

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be in 0..6, got {self.day_of_week}")
        ordered = tuple(sorted(self.templates, key=lambda t: t.starting_time))
        for previous, current in zip(ordered, ordered[1:]):
            if current.starting_time < previous.ending_time:
                raise InvalidPeriod(
                    f"Templates {previous.starting_time}-{previous.ending_time} and "
                    f"{current.starting_time}-{current.ending_time} overlap"
                )
        object.__setattr__(self, "templates", ordered)

    @property
    def min_starting_time(self) -> time | None:
        return self.templates[0].starting_time if self.templates else None

    @property
    def max_ending_time(self) -> time | None:
        return max((t.ending_time for t in self.templates), default=None)

    @property
    def min_duration_minutes(self) -> int | None:
        return min((t.duration_minutes for t in self.templates), default=None)

    def template_starting_at(self, starting_time: time) -> TimeSlotTemplate | None:
        for template in self.templates:
            if template.starting_time == starting_time:
                return template
        return None

    def next_template_after(self, moment: time) -> TimeSlotTemplate | None:
        """First template starting at or after moment."""
        for template in self.templates:
            if template.starting_time >= moment:
                return template
        return None


@dataclass(frozen=True)
class WeekDefinition:
    """A dated weekly opening pattern. Missing weekdays are closed."""
    effective_from: date
    working_days: tuple[WorkingDay, ...] = ()

    def __post_init__(self):
        days = [wd.day_of_week for wd in self.working_days]
        if len(days) != len(set(days)):
            raise ValueError(f"Duplicate working day in week definition of {self.effective_from}")

    def working_day_for(self, target_date: date) -> WorkingDay | None:
        weekday = target_date.weekday()
        for working_day in self.working_days:
            if working_day.day_of_week == weekday:
                return working_day
        return None

    @property
    def min_starting_time(self) -> time | None:
        times = [wd.min_starting_time for wd in self.working_days if wd.templates]
        return min(times, default=None)

    @property
    def max_ending_time(self) -> time | None:
        times = [wd.max_ending_time for wd in self.working_days if wd.templates]
        return max(times, default=None)

    @property
    def min_duration_minutes(self) -> int | None:
        durations = [wd.min_duration_minutes for wd in self.working_days if wd.templates]
        return min(durations, default=None)


@dataclass(frozen=True)
class ReservationRule:
    """A dated booking policy."""
    effective_from: date
    max_capacity_per_slot: int
    max_people_per_appointment: int = 1
    # Limits on who books when; 0 disables each of them
    min_hours_before_appointment: int = 0
    max_appointments_per_user: int = 0
    nb_days_for_max_appointments_per_user: int = 0
    nb_days_between_appointments: int = 0

    def __post_init__(self):
        if self.max_capacity_per_slot < 0:
            raise ValueError(f"max_capacity_per_slot must be >= 0, got {self.max_capacity_per_slot}")
        for name in (
            "min_hours_before_appointment",
            "max_appointments_per_user",
            "nb_days_for_max_appointments_per_user",
            "nb_days_between_appointments",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.max_people_per_appointment > self.max_capacity_per_slot:
            raise ValueError(
                "max_people_per_appointment cannot exceed max_capacity_per_slot "
                f"({self.max_people_per_appointment} > {self.max_capacity_per_slot})"
            )


@dataclass(frozen=True)
class DayRules:
    """What the rules say about one calendar day."""
    day: date
    week_definition: WeekDefinition | None
    reservation_rule: ReservationRule | None
    is_closing_day: bool = False

    @property
    def working_day(self) -> WorkingDay | None:
        if self.week_definition is None:
            return None
        return self.week_definition.working_day_for(self.day)

    @property
    def default_capacity(self) -> int:
        return self.reservation_rule.max_capacity_per_slot if self.reservation_rule else 0

    @property
    def day_start(self) -> datetime | None:
        """Opening of the day (working day, else the week's earliest opening)."""
        working_day = self.working_day
        if working_day is not None:
            opening = working_day.min_starting_time
        elif self.week_definition is not None:
            opening = self.week_definition.min_starting_time
        else:
            opening = None
        return datetime.combine(self.day, opening) if opening is not None else None

    @property
    def day_end(self) -> datetime | None:
        """Closing of the day (working day, else the week's latest closing)."""
        working_day = self.working_day
        if working_day is not None:
            closing = working_day.max_ending_time
        elif self.week_definition is not None:
            closing = self.week_definition.max_ending_time
        else:
            closing = None
        return datetime.combine(self.day, closing) if closing is not None else None

    @property
    def step_minutes(self) -> int | None:
        """Length of generated filler slots."""
        working_day = self.working_day
        if working_day is not None:
            return working_day.min_duration_minutes
        if self.week_definition is not None:
            return self.week_definition.min_duration_minutes
        return None


@dataclass
class Slot:
    """
    A concrete bookable (or closed) interval of a form.

    id == 0 means the slot is computed from the rules and not stored.
    Build new slots with Slot.build so the counters start consistent.
    """
    form_id: int
    starting_date_time: datetime
    ending_date_time: datetime
    max_capacity: int
    nb_remaining_places: int
    nb_potential_remaining_places: int
    nb_places_taken: int = 0
    is_open: bool = True
    is_specific: bool = False
    id: int = 0
    version: int = field(default=0, compare=False)

    @classmethod
    def build(
        cls,
        form_id: int,
        period: Period,
        max_capacity: int,
        is_open: bool,
        is_specific: bool = False,
    ) -> "Slot":
        """A slot with no bookings: every counter equals max_capacity."""
        return cls(
            form_id=form_id,
            starting_date_time=period.start,
            ending_date_time=period.end,
            max_capacity=max_capacity,
            nb_remaining_places=max_capacity,
            nb_potential_remaining_places=max_capacity,
            nb_places_taken=0,
            is_open=is_open,
            is_specific=is_specific,
        )

    @property
    def period(self) -> Period:
        return Period(self.starting_date_time, self.ending_date_time)

    @property
    def date(self) -> date:
        return self.starting_date_time.date()

    @property
    def starting_time(self) -> time:
        return self.starting_date_time.time()

    @property
    def ending_time(self) -> time:
        return self.ending_date_time.time()

    @property
    def is_persisted(self) -> bool:
        return self.id != 0

    @property
    def is_overbooked(self) -> bool:
        return self.nb_places_taken > self.max_capacity
