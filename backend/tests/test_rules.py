from datetime import date, datetime, time

import pytest

from app.services.slots import (
    InvalidPeriod,
    ReservationRule,
    RuleResolver,
    TimeSlotTemplate,
    WeekDefinition,
    WorkingDay,
    build_templates,
)
from app.services.slots.rules import closest_in_past

JAN = date(2024, 1, 1)
FEB = date(2024, 2, 1)


def _week(effective_from: date, days=range(5), closing: time = time(12)) -> WeekDefinition:
    return WeekDefinition(
        effective_from,
        tuple(WorkingDay(d, build_templates(time(9), closing, 30)) for d in days),
    )


class TestClosestInPast:
    def test_picks_greatest_effective_date_not_after_target(self):
        rules = [ReservationRule(JAN, 2), ReservationRule(FEB, 4)]
        keys = [JAN, FEB]

        assert closest_in_past(rules, keys, date(2024, 1, 31)).max_capacity_per_slot == 2
        assert closest_in_past(rules, keys, FEB).max_capacity_per_slot == 4
        assert closest_in_past(rules, keys, date(2025, 6, 1)).max_capacity_per_slot == 4

    def test_nothing_before_first_rule(self):
        assert closest_in_past([ReservationRule(JAN, 2)], [JAN], date(2023, 12, 31)) is None


class TestRuleResolver:
    def test_families_resolve_independently(self):
        resolver = RuleResolver(
            1,
            week_definitions=[_week(JAN), _week(date(2024, 1, 15), closing=time(17))],
            reservation_rules=[ReservationRule(FEB, 3)],
        )

        rules = resolver.resolve_for_date(date(2024, 1, 22))

        assert rules.week_definition.effective_from == date(2024, 1, 15)
        assert rules.reservation_rule is None
        assert resolver.first_effective_date == FEB

    def test_unsorted_input(self):
        resolver = RuleResolver(
            1,
            reservation_rules=[ReservationRule(FEB, 4), ReservationRule(JAN, 2)],
        )

        assert resolver.reservation_rule_for(date(2024, 1, 20)).max_capacity_per_slot == 2
        assert resolver.first_effective_date == JAN

    def test_no_rule_at_all(self):
        resolver = RuleResolver(1)

        assert resolver.first_effective_date is None
        assert resolver.week_definition_for(JAN) is None

    def test_closing_day(self):
        resolver = RuleResolver(1, closing_days=[date(2024, 1, 10)])

        assert resolver.is_closing_day(date(2024, 1, 10))
        assert resolver.resolve_for_date(date(2024, 1, 10)).is_closing_day
        assert not resolver.is_closing_day(date(2024, 1, 11))


class TestDayRules:
    def test_working_day_bounds(self):
        resolver = RuleResolver(1, [_week(JAN)], [ReservationRule(JAN, 2)])

        rules = resolver.resolve_for_date(date(2024, 1, 8))

        assert rules.day_start == datetime(2024, 1, 8, 9)
        assert rules.day_end == datetime(2024, 1, 8, 12)
        assert rules.step_minutes == 30
        assert rules.default_capacity == 2

    def test_weekly_closed_day_uses_week_bounds(self):
        week = WeekDefinition(
            JAN,
            (
                WorkingDay(0, build_templates(time(9), time(12), 30)),
                WorkingDay(1, build_templates(time(8), time(11), 20)),
            ),
        )
        resolver = RuleResolver(1, [week], [ReservationRule(JAN, 2)])

        rules = resolver.resolve_for_date(date(2024, 1, 6))  # Saturday

        assert rules.working_day is None
        assert rules.day_start == datetime(2024, 1, 6, 8)
        assert rules.day_end == datetime(2024, 1, 6, 12)
        assert rules.step_minutes == 20


class TestBuildTemplates:
    def test_contiguous_with_shorter_last(self):
        templates = build_templates(time(9), time(10, 10), 30)

        assert [(t.starting_time, t.ending_time) for t in templates] == [
            (time(9), time(9, 30)),
            (time(9, 30), time(10)),
            (time(10), time(10, 10)),
        ]

    @pytest.mark.parametrize(
        "opening, closing, duration",
        [
            (time(9), time(12), 0),
            (time(12), time(9), 30),
            (time(9), time(9), 30),
        ],
    )
    def test_rejects_bad_input(self, opening, closing, duration):
        with pytest.raises(InvalidPeriod):
            build_templates(opening, closing, duration)


class TestValueTypes:
    def test_overlapping_templates(self):
        with pytest.raises(InvalidPeriod):
            WorkingDay(
                0,
                (
                    TimeSlotTemplate(time(9), time(10)),
                    TimeSlotTemplate(time(9, 30), time(10, 30)),
                ),
            )

    def test_templates_are_sorted(self):
        day = WorkingDay(
            0,
            (TimeSlotTemplate(time(10), time(11)), TimeSlotTemplate(time(9), time(10))),
        )

        assert day.min_starting_time == time(9)
        assert day.next_template_after(time(9, 15)).starting_time == time(10)
        assert day.next_template_after(time(11)) is None

    def test_people_per_appointment_within_capacity(self):
        with pytest.raises(ValueError):
            ReservationRule(JAN, max_capacity_per_slot=2, max_people_per_appointment=3)

    def test_duplicate_working_day(self):
        with pytest.raises(ValueError):
            WeekDefinition(JAN, (WorkingDay(0), WorkingDay(0)))
