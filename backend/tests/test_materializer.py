from datetime import date, datetime, time
from unittest.mock import Mock

from app.services.slots import (
    Period,
    ReservationRule,
    RuleResolver,
    Slot,
    SlotMaterializer,
    TimeSlotTemplate,
    WeekDefinition,
    WorkingDay,
    build_templates,
    is_specific_slot,
)

FORM_ID = 1
JAN = date(2024, 1, 1)
MONDAY = date(2024, 1, 8)
SATURDAY = date(2024, 1, 6)


def _week(monday_templates=None) -> WeekDefinition:
    days = [WorkingDay(d, build_templates(time(9), time(12), 30)) for d in range(1, 5)]
    days.append(WorkingDay(0, monday_templates or build_templates(time(9), time(12), 30)))
    return WeekDefinition(JAN, tuple(days))


def _materializer(stored=(), closing_days=(), week=None, rules=None) -> SlotMaterializer:
    resolver = RuleResolver(
        FORM_ID,
        week_definitions=[week or _week()],
        reservation_rules=rules or [ReservationRule(JAN, 2)],
        closing_days=closing_days,
    )
    repository = Mock()
    repository.find_by_date_range.return_value = list(stored)
    return SlotMaterializer(resolver, repository)


def _starts(slots) -> list[time]:
    return [s.starting_time for s in slots]


def test_working_day_follows_templates():
    slots = _materializer().materialize_day(MONDAY)

    assert _starts(slots) == [time(9), time(9, 30), time(10), time(10, 30), time(11), time(11, 30)]
    for slot in slots:
        assert slot.is_open
        assert not slot.is_persisted
        assert not slot.is_specific
        assert (slot.max_capacity, slot.nb_remaining_places, slot.nb_places_taken) == (2, 2, 0)


def test_template_capacity_overrides_rule():
    templates = (
        TimeSlotTemplate(time(9), time(10), max_capacity=5),
        TimeSlotTemplate(time(10), time(11), is_open=False),
    )

    slots = _materializer(week=_week(templates)).materialize_day(MONDAY)

    assert [(s.max_capacity, s.is_open) for s in slots] == [(5, True), (2, False)]


def test_weekly_closed_day_is_filled_with_closed_slots():
    slots = _materializer().materialize_day(SATURDAY)

    assert len(slots) == 6
    assert all(not s.is_open and s.max_capacity == 2 for s in slots)
    assert slots[0].starting_date_time == datetime(2024, 1, 6, 9)
    assert slots[-1].ending_date_time == datetime(2024, 1, 6, 12)


def test_closing_day_is_one_closed_slot():
    wednesday = date(2024, 1, 10)

    slots = _materializer(closing_days=[wednesday]).materialize_day(wednesday)

    assert len(slots) == 1
    assert slots[0].period == Period(datetime(2024, 1, 10, 9), datetime(2024, 1, 10, 12))
    assert not slots[0].is_open


def test_stored_slot_replaces_templates_it_covers():
    stored = Slot.build(FORM_ID, Period(datetime(2024, 1, 8, 9), datetime(2024, 1, 8, 10)), 3, True, True)
    stored.id = 7

    slots = _materializer(stored=[stored]).materialize_day(MONDAY)

    assert _starts(slots) == [time(9), time(10), time(10, 30), time(11), time(11, 30)]
    assert slots[0].id == 7
    assert slots[0].max_capacity == 3


def test_nothing_before_first_reservation_rule():
    slots = list(_materializer().materialize(date(2023, 12, 25), JAN))

    assert {s.date for s in slots} == {JAN}


def test_no_reservation_rule_no_slots():
    materializer = _materializer(rules=[ReservationRule(date(2024, 3, 1), 2)])

    assert list(materializer.materialize(JAN, date(2024, 1, 31))) == []


def test_reservation_rule_change_applies_from_its_date():
    rules = [ReservationRule(JAN, 2), ReservationRule(date(2024, 2, 1), 4)]
    materializer = _materializer(rules=rules)

    assert materializer.materialize_day(date(2024, 1, 29))[0].max_capacity == 2
    assert materializer.materialize_day(date(2024, 2, 5))[0].max_capacity == 4


def test_range_is_ordered_across_days():
    slots = list(_materializer().materialize(date(2024, 1, 5), MONDAY))

    assert len(slots) == 24
    starts = [s.starting_date_time for s in slots]
    assert starts == sorted(starts)


def test_materialization_is_idempotent():
    materializer = _materializer()

    assert materializer.materialize_day(MONDAY) == materializer.materialize_day(MONDAY)


def test_materialize_is_lazy():
    materializer = _materializer()

    slots = materializer.materialize(JAN, date(2024, 12, 31))

    materializer.repository.find_by_date_range.assert_not_called()
    assert next(slots).starting_date_time == datetime(2024, 1, 1, 9)


class TestSpecificFlag:
    def _rules(self, day=MONDAY, reservation_rules=None):
        return RuleResolver(
            FORM_ID, [_week()], reservation_rules or [ReservationRule(JAN, 2)]
        ).resolve_for_date(day)

    def _slot(self, day, start, end, capacity=2, is_open=True):
        return Slot.build(
            FORM_ID,
            Period(datetime.combine(day, start), datetime.combine(day, end)),
            capacity,
            is_open,
        )

    def test_template_shape(self):
        assert not is_specific_slot(self._slot(MONDAY, time(9), time(9, 30)), self._rules())

    def test_other_end(self):
        assert is_specific_slot(self._slot(MONDAY, time(9), time(9, 45)), self._rules())

    def test_other_capacity(self):
        assert is_specific_slot(self._slot(MONDAY, time(9), time(9, 30), capacity=3), self._rules())

    def test_closed_instead_of_open(self):
        slot = self._slot(MONDAY, time(9), time(9, 30), is_open=False)
        assert is_specific_slot(slot, self._rules())

    def test_weekly_closed_day(self):
        rules = self._rules(day=SATURDAY)

        assert not is_specific_slot(self._slot(SATURDAY, time(9), time(9, 30), is_open=False), rules)
        assert is_specific_slot(self._slot(SATURDAY, time(9), time(9, 30)), rules)

    def test_without_reservation_rule(self):
        rules = self._rules(reservation_rules=[ReservationRule(date(2024, 3, 1), 2)])

        assert is_specific_slot(self._slot(MONDAY, time(9), time(9, 30)), rules)
