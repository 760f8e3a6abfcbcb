# backend/app/routers/forms.py
# Week definitions and reservation rules are versioned by date_of_apply:
# a new version is added, existing versions are never edited.

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import (
    Forms as DBForms,
    ReservationRules as DBReservationRules,
    TimeSlots as DBTimeSlots,
    WeekDefinitions as DBWeekDefinitions,
    WorkingDays as DBWorkingDays,
)
from ..schemas.forms import (
    FormCreate,
    FormRead,
    ReservationRuleCreate,
    ReservationRuleRead,
    WeekDefinitionCreate,
    WeekDefinitionRead,
    WorkingDayCreate,
)
from ..services.slots import TimeSlotTemplate, WorkingDay, build_templates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["forms"])


def _get_form(db: Session, form_id: int) -> DBForms:
    form = db.get(DBForms, form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


def _templates(day: WorkingDayCreate) -> WorkingDay:
    if day.time_slots:
        templates = tuple(
            TimeSlotTemplate(
                starting_time=t.starting_time,
                ending_time=t.ending_time,
                is_open=t.is_open,
                max_capacity=t.max_capacity,
            )
            for t in day.time_slots
        )
    else:
        templates = build_templates(day.opening_time, day.closing_time, day.duration_minutes)
    # Raises InvalidPeriod on overlapping templates
    return WorkingDay(day.day_of_week, templates)


def _commit_version(db: Session, obj, what: str, form_id: int):
    date_of_apply = obj.date_of_apply
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Form {form_id} already has a {what} applying on {date_of_apply}",
        )
    db.refresh(obj)
    return obj


@router.post("/", response_model=FormRead, status_code=status.HTTP_201_CREATED)
def create_form(data: FormCreate, db: Session = Depends(get_db)):
    obj = DBForms(
        title=data.title,
        description=data.description,
        is_active=int(data.is_active),
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.get("/{id}", response_model=FormRead)
def get_form(id: int, db: Session = Depends(get_db)):
    return _get_form(db, id)


# ──────────────────────────────────────────────────────────────────────────────
# Week definitions
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/{id}/week_definitions", response_model=list[WeekDefinitionRead])
def list_week_definitions(id: int, db: Session = Depends(get_db)):
    return sorted(_get_form(db, id).week_definitions, key=lambda w: w.date_of_apply)


@router.post(
    "/{id}/week_definitions",
    response_model=WeekDefinitionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_week_definition(id: int, data: WeekDefinitionCreate, db: Session = Depends(get_db)):
    _get_form(db, id)
    working_days = [_templates(day) for day in data.working_days]

    obj = DBWeekDefinitions(form_id=id, date_of_apply=data.date_of_apply)
    for working_day in working_days:
        obj.working_days.append(
            DBWorkingDays(
                day_of_week=working_day.day_of_week,
                time_slots=[
                    DBTimeSlots(
                        starting_time=t.starting_time,
                        ending_time=t.ending_time,
                        is_open=int(t.is_open),
                        max_capacity=t.max_capacity,
                    )
                    for t in working_day.templates
                ],
            )
        )

    obj = _commit_version(db, obj, "week definition", id)
    logger.info(f"Week definition {obj.id} of form {id} applies from {obj.date_of_apply}")
    return obj


# ──────────────────────────────────────────────────────────────────────────────
# Reservation rules
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/{id}/reservation_rules", response_model=list[ReservationRuleRead])
def list_reservation_rules(id: int, db: Session = Depends(get_db)):
    return (
        db.query(DBReservationRules)
        .filter(DBReservationRules.form_id == _get_form(db, id).id)
        .order_by(DBReservationRules.date_of_apply)
        .all()
    )


@router.post(
    "/{id}/reservation_rules",
    response_model=ReservationRuleRead,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation_rule(id: int, data: ReservationRuleCreate, db: Session = Depends(get_db)):
    _get_form(db, id)
    obj = DBReservationRules(form_id=id, **data.model_dump())
    obj = _commit_version(db, obj, "reservation rule", id)
    logger.info(
        f"Reservation rule {obj.id} of form {id} applies from {obj.date_of_apply} "
        f"(capacity {obj.max_capacity_per_slot})"
    )
    return obj
