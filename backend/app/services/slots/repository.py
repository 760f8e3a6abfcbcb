# backend/app/services/slots/repository.py
"""
SQLAlchemy-backed collaborators of the slot engine.

Slot writes commit on their own unless called with commit=False, in which
case they are only flushed and the caller ends the transaction with
commit() or rollback(). A slot edit touching several slots uses the latter so
a conflict on any write undoes the whole edit.
"""

import logging
from dataclasses import replace
from datetime import date, datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ...models.generated import (
    ClosingDays as DBClosingDay,
    ReservationRules as DBReservationRule,
    Slots as DBSlot,
    WeekDefinitions as DBWeekDefinition,
    WorkingDays as DBWorkingDay,
)
from .errors import ConcurrentModification, SlotNotFound
from .types import ReservationRule, Slot, TimeSlotTemplate, WeekDefinition, WorkingDay

logger = logging.getLogger(__name__)


# ── Row conversion ──────────────────────────────────────────────────────


def slot_from_row(row: DBSlot) -> Slot:
    return Slot(
        id=row.id,
        form_id=row.form_id,
        starting_date_time=row.starting_date_time,
        ending_date_time=row.ending_date_time,
        max_capacity=row.max_capacity,
        nb_remaining_places=row.nb_remaining_places,
        nb_potential_remaining_places=row.nb_potential_remaining_places,
        nb_places_taken=row.nb_places_taken,
        is_open=bool(row.is_open),
        is_specific=bool(row.is_specific),
        version=row.version,
    )


def _slot_values(slot: Slot) -> dict:
    return {
        "form_id": slot.form_id,
        "starting_date_time": slot.starting_date_time,
        "ending_date_time": slot.ending_date_time,
        "max_capacity": slot.max_capacity,
        "nb_remaining_places": slot.nb_remaining_places,
        "nb_potential_remaining_places": slot.nb_potential_remaining_places,
        "nb_places_taken": slot.nb_places_taken,
        "is_open": int(slot.is_open),
        "is_specific": int(slot.is_specific),
    }


def week_definition_from_row(row: DBWeekDefinition) -> WeekDefinition:
    return WeekDefinition(
        effective_from=row.date_of_apply,
        working_days=tuple(
            WorkingDay(
                day_of_week=wd.day_of_week,
                templates=tuple(
                    TimeSlotTemplate(
                        starting_time=ts.starting_time,
                        ending_time=ts.ending_time,
                        is_open=bool(ts.is_open),
                        max_capacity=ts.max_capacity,
                    )
                    for ts in wd.time_slots
                ),
            )
            for wd in row.working_days
        ),
    )


def reservation_rule_from_row(row: DBReservationRule) -> ReservationRule:
    return ReservationRule(
        effective_from=row.date_of_apply,
        max_capacity_per_slot=row.max_capacity_per_slot,
        max_people_per_appointment=row.max_people_per_appointment,
        min_hours_before_appointment=row.min_hours_before_appointment,
        max_appointments_per_user=row.max_appointments_per_user,
        nb_days_for_max_appointments_per_user=row.nb_days_for_max_appointments_per_user,
        nb_days_between_appointments=row.nb_days_between_appointments,
    )


# ── Slots ───────────────────────────────────────────────────────────────


class SlotRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, slot_id: int) -> Slot | None:
        row = self.db.get(DBSlot, slot_id, populate_existing=True)
        return slot_from_row(row) if row else None

    def find_by_starting_date_time(self, form_id: int, starting_date_time: datetime) -> Slot | None:
        row = (
            self.db.query(DBSlot)
            .filter(DBSlot.form_id == form_id, DBSlot.starting_date_time == starting_date_time)
            .first()
        )
        return slot_from_row(row) if row else None

    def find_by_date_range(self, form_id: int, start: datetime, end: datetime) -> list[Slot]:
        """Slots starting within [start, end], ordered by start."""
        rows = (
            self.db.query(DBSlot)
            .filter(
                DBSlot.form_id == form_id,
                DBSlot.starting_date_time >= start,
                DBSlot.starting_date_time <= end,
            )
            .order_by(DBSlot.starting_date_time)
            .all()
        )
        return [slot_from_row(row) for row in rows]

    def find_open_by_date_range(self, form_id: int, start: datetime, end: datetime) -> list[Slot]:
        rows = (
            self.db.query(DBSlot)
            .filter(
                DBSlot.form_id == form_id,
                DBSlot.is_open == 1,
                DBSlot.starting_date_time >= start,
                DBSlot.starting_date_time <= end,
            )
            .order_by(DBSlot.starting_date_time)
            .all()
        )
        return [slot_from_row(row) for row in rows]

    def find_specific(self, form_id: int) -> list[Slot]:
        rows = (
            self.db.query(DBSlot)
            .filter(DBSlot.form_id == form_id, DBSlot.is_specific == 1)
            .order_by(DBSlot.starting_date_time)
            .all()
        )
        return [slot_from_row(row) for row in rows]

    def find_with_max_date(self, form_id: int) -> Slot | None:
        max_start = (
            self.db.query(func.max(DBSlot.starting_date_time))
            .filter(DBSlot.form_id == form_id)
            .scalar()
        )
        if max_start is None:
            return None
        return self.find_by_starting_date_time(form_id, max_start)

    def create(self, slot: Slot, commit: bool = True) -> Slot:
        row = DBSlot(**_slot_values(slot), version=0)
        self.db.add(row)
        try:
            self._end_write(commit)
        except IntegrityError as e:
            self.db.rollback()
            raise ConcurrentModification(
                f"A slot of form {slot.form_id} already starts or ends like "
                f"{slot.starting_date_time} - {slot.ending_date_time}"
            ) from e
        self.db.refresh(row)
        logger.info(f"Slot {row.id} created for form {row.form_id} at {row.starting_date_time}")
        return slot_from_row(row)

    def update(self, slot: Slot, commit: bool = True) -> Slot:
        """Write slot if nobody changed it since it was read (version check)."""
        stmt = (
            update(DBSlot)
            .where(DBSlot.id == slot.id, DBSlot.version == slot.version)
            .values(**_slot_values(slot), version=slot.version + 1)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                if self.db.get(DBSlot, slot.id) is None:
                    raise SlotNotFound(f"Slot {slot.id} not found")
                raise ConcurrentModification(f"Slot {slot.id} was modified concurrently")
            if commit:
                self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConcurrentModification(
                f"Slot {slot.id} collides with another slot of form {slot.form_id}"
            ) from e
        logger.info(f"Slot {slot.id} updated ({slot.starting_date_time} - {slot.ending_date_time})")
        return replace(slot, version=slot.version + 1)

    def delete(self, slot: Slot, commit: bool = True) -> None:
        """Delete a slot and, with it, its appointments."""
        row = self.db.get(DBSlot, slot.id)
        if row is None:
            raise SlotNotFound(f"Slot {slot.id} not found")
        self.db.delete(row)
        self._end_write(commit)
        logger.info(f"Slot {slot.id} deleted with its appointments")

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def _end_write(self, commit: bool) -> None:
        if commit:
            self.db.commit()
        else:
            self.db.flush()


# ── Rules ───────────────────────────────────────────────────────────────


class RuleRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_week_definitions(self, form_id: int) -> list[WeekDefinition]:
        rows = (
            self.db.query(DBWeekDefinition)
            .options(
                selectinload(DBWeekDefinition.working_days).selectinload(DBWorkingDay.time_slots)
            )
            .filter(DBWeekDefinition.form_id == form_id)
            .order_by(DBWeekDefinition.date_of_apply)
            .all()
        )
        return [week_definition_from_row(row) for row in rows]

    def find_reservation_rules(self, form_id: int) -> list[ReservationRule]:
        rows = (
            self.db.query(DBReservationRule)
            .filter(DBReservationRule.form_id == form_id)
            .order_by(DBReservationRule.date_of_apply)
            .all()
        )
        return [reservation_rule_from_row(row) for row in rows]

    def find_closing_days(
        self,
        form_id: int,
        start: date | None = None,
        end: date | None = None,
    ) -> list[date]:
        query = self.db.query(DBClosingDay.date_of_closing_day).filter(DBClosingDay.form_id == form_id)
        if start is not None:
            query = query.filter(DBClosingDay.date_of_closing_day >= start)
        if end is not None:
            query = query.filter(DBClosingDay.date_of_closing_day <= end)
        return [d for (d,) in query.order_by(DBClosingDay.date_of_closing_day).all()]
