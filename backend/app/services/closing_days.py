# backend/app/services/closing_days.py
"""
Closing day registration.

A closing day hides every slot of its date, so a date that already holds
open stored slots (possibly booked) is refused instead of silently closed.
"""

import logging
from datetime import date, datetime, time

from sqlalchemy.orm import Session

from ..models.generated import ClosingDays as DBClosingDay
from .slots import OpenSlotsOnClosingDay
from .slots.repository import RuleRepository, SlotRepository

logger = logging.getLogger(__name__)


def add_closing_days(db: Session, form_id: int, dates: list[date]) -> list[DBClosingDay]:
    """
    Register closing days of a form.

    Dates already registered are skipped. Nothing is written if any new
    date holds an open stored slot.
    """
    known = set(RuleRepository(db).find_closing_days(form_id))
    new_dates = sorted({d for d in dates if d not in known})

    slots = SlotRepository(db)
    for closing_date in new_dates:
        open_slots = slots.find_open_by_date_range(
            form_id,
            datetime.combine(closing_date, time.min),
            datetime.combine(closing_date, time.max),
        )
        if open_slots:
            raise OpenSlotsOnClosingDay(
                f"Form {form_id} has {len(open_slots)} open slot(s) on {closing_date.isoformat()}"
            )

    created = [DBClosingDay(form_id=form_id, date_of_closing_day=d) for d in new_dates]
    db.add_all(created)
    db.commit()
    for row in created:
        db.refresh(row)

    logger.info(f"{len(created)} closing day(s) added to form {form_id}")
    return created
