# backend/app/services/appointments.py
"""
Appointment lifecycle.

Booking, cancelling and deleting an appointment are the events that move
a slot's seat counters. Each path goes through the capacity ledger.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..models.generated import Appointments as DBAppointment, Slots as DBSlot
from .slots import (
    AppointmentNotFound,
    BookingRuleViolation,
    InvalidSeatCount,
    ReservationRule,
    RuleResolver,
    Slot,
    SlotNotFound,
    SlotService,
)

logger = logging.getLogger(__name__)


def _get_appointment(db: Session, appointment_id: int) -> DBAppointment:
    appointment = db.get(DBAppointment, appointment_id)
    if appointment is None:
        raise AppointmentNotFound(f"Appointment {appointment_id} not found")
    return appointment


def _live_appointment_starts(db: Session, form_id: int, user_id: int) -> list[datetime]:
    """Starts of the slots holding the user's non-cancelled appointments on a form."""
    rows = (
        db.query(DBSlot.starting_date_time)
        .join(DBAppointment, DBAppointment.slot_id == DBSlot.id)
        .filter(
            DBSlot.form_id == form_id,
            DBAppointment.user_id == user_id,
            DBAppointment.is_cancelled == 0,
        )
        .all()
    )
    return [start for (start,) in rows]


def _check_user_limits(db: Session, rule: ReservationRule, slot: Slot, user_id: int) -> None:
    if not (rule.max_appointments_per_user or rule.nb_days_between_appointments):
        return

    distances = [
        abs((start.date() - slot.date).days)
        for start in _live_appointment_starts(db, slot.form_id, user_id)
    ]

    if rule.max_appointments_per_user:
        window = rule.nb_days_for_max_appointments_per_user
        counted = [d for d in distances if not window or d < window]
        if len(counted) >= rule.max_appointments_per_user:
            raise BookingRuleViolation(
                f"User {user_id} already has {len(counted)} appointment(s) on form {slot.form_id}"
                + (f" within {window} days of {slot.date}" if window else "")
                + f", at most {rule.max_appointments_per_user} allowed"
            )

    gap = rule.nb_days_between_appointments
    if gap and any(d < gap for d in distances):
        raise BookingRuleViolation(
            f"User {user_id} has another appointment less than {gap} days from {slot.date}"
        )


def _check_reservation_rule(
    service: SlotService,
    slot: Slot,
    nb_seats: int,
    user_id: Optional[int],
    now: datetime,
) -> None:
    rule = RuleResolver.load(service.rules, slot.form_id).reservation_rule_for(slot.date)
    if rule is None:
        return

    if nb_seats > rule.max_people_per_appointment:
        raise InvalidSeatCount(
            f"At most {rule.max_people_per_appointment} seats per appointment, {nb_seats} requested"
        )

    if rule.min_hours_before_appointment:
        earliest = now + timedelta(hours=rule.min_hours_before_appointment)
        if slot.starting_date_time < earliest:
            raise BookingRuleViolation(
                f"Slot {slot.id} starts at {slot.starting_date_time}: appointments must be booked "
                f"at least {rule.min_hours_before_appointment} hours ahead"
            )

    # Anonymous appointments are not subject to per-user limits
    if user_id is not None:
        _check_user_limits(service.db, rule, slot, user_id)


def create_appointment(
    service: SlotService,
    nb_booked_seats: int,
    slot_id: Optional[int] = None,
    form_id: Optional[int] = None,
    starting_date_time: Optional[datetime] = None,
    user_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> DBAppointment:
    """
    Book seats on a slot and record the appointment.

    The slot is given by id, or by form and starting instant (a computed
    slot is stored first). The reservation rule of the slot's day bounds the
    seats per appointment, how late it can be booked (relative to now) and
    how many appointments one user may hold.
    """
    now = now or datetime.now()
    if slot_id is not None:
        slot = service.get_slot(slot_id)
        if slot is None:
            raise SlotNotFound(f"Slot {slot_id} not found")
    elif form_id is not None and starting_date_time is not None:
        slot = service.persist_slot(form_id, starting_date_time)
    else:
        raise SlotNotFound("slot_id or form_id with starting_date_time required")

    _check_reservation_rule(service, slot, nb_booked_seats, user_id, now)
    result = service.book_seats(slot.id, nb_booked_seats)

    db = service.db
    appointment = DBAppointment(
        slot_id=result.slot.id,
        user_id=user_id,
        nb_booked_seats=nb_booked_seats,
        is_cancelled=0,
    )
    db.add(appointment)
    try:
        db.commit()
    except Exception:
        db.rollback()
        # Give the seats back: the appointment does not exist
        service.release_seats(result.slot.id, nb_booked_seats)
        raise
    db.refresh(appointment)

    logger.info(
        f"Appointment {appointment.id} booked {nb_booked_seats} seat(s) on slot {result.slot.id}"
    )
    return appointment


def cancel_appointment(service: SlotService, appointment_id: int) -> DBAppointment:
    """Cancel an appointment and release its seats. Cancelling twice is a no-op."""
    db = service.db
    appointment = _get_appointment(db, appointment_id)
    if appointment.is_cancelled:
        return appointment

    service.release_seats(appointment.slot_id, appointment.nb_booked_seats)
    appointment.is_cancelled = 1
    db.commit()
    db.refresh(appointment)

    logger.info(f"Appointment {appointment_id} cancelled, slot {appointment.slot_id} released")
    return appointment


def delete_appointment(service: SlotService, appointment_id: int) -> None:
    """Delete an appointment; seats of a live appointment go back to its slot."""
    db = service.db
    appointment = _get_appointment(db, appointment_id)
    slot_id = appointment.slot_id
    nb_seats = appointment.nb_booked_seats
    was_cancelled = bool(appointment.is_cancelled)

    if not was_cancelled:
        service.release_seats(slot_id, nb_seats)
    db.delete(appointment)
    db.commit()

    logger.info(f"Appointment {appointment_id} deleted (slot {slot_id})")
