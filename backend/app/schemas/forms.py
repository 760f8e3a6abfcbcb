# backend/app/schemas/forms.py

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, model_validator


# ──────────────────────────────────────────────────────────────────────────────
# Forms
# ──────────────────────────────────────────────────────────────────────────────

class FormCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_active: bool = True


class FormRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ──────────────────────────────────────────────────────────────────────────────
# Week definitions
# ──────────────────────────────────────────────────────────────────────────────

class TimeSlotCreate(BaseModel):
    starting_time: time
    ending_time: time
    is_open: bool = True
    max_capacity: int = Field(0, ge=0, description="0 = reservation rule capacity")

    @model_validator(mode="after")
    def check_times(self):
        if self.ending_time <= self.starting_time:
            raise ValueError("ending_time must be after starting_time")
        return self


class WorkingDayCreate(BaseModel):
    """
    A working day lists its time slots, or describes them with opening,
    closing and duration (the last slot may be shorter).
    """
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Monday, 6 = Sunday")
    time_slots: list[TimeSlotCreate] = []

    opening_time: Optional[time] = None
    closing_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(None, gt=0)

    @model_validator(mode="after")
    def check_definition(self):
        generated = (self.opening_time, self.closing_time, self.duration_minutes)
        if self.time_slots and any(v is not None for v in generated):
            raise ValueError("Give time_slots or opening_time/closing_time/duration_minutes, not both")
        if not self.time_slots and any(v is None for v in generated):
            raise ValueError("opening_time, closing_time and duration_minutes are required without time_slots")
        return self


class WeekDefinitionCreate(BaseModel):
    date_of_apply: date
    working_days: list[WorkingDayCreate] = []

    @model_validator(mode="after")
    def check_days(self):
        days = [d.day_of_week for d in self.working_days]
        if len(days) != len(set(days)):
            raise ValueError("A day of week can only be defined once")
        return self


class TimeSlotRead(BaseModel):
    id: int
    starting_time: time
    ending_time: time
    is_open: bool
    max_capacity: int

    model_config = {"from_attributes": True}


class WorkingDayRead(BaseModel):
    id: int
    day_of_week: int
    time_slots: list[TimeSlotRead]

    model_config = {"from_attributes": True}


class WeekDefinitionRead(BaseModel):
    id: int
    form_id: int
    date_of_apply: date
    working_days: list[WorkingDayRead]

    model_config = {"from_attributes": True}


# ──────────────────────────────────────────────────────────────────────────────
# Reservation rules
# ──────────────────────────────────────────────────────────────────────────────

class ReservationRuleCreate(BaseModel):
    date_of_apply: date
    max_capacity_per_slot: int = Field(..., gt=0)
    max_people_per_appointment: int = Field(1, gt=0)
    min_hours_before_appointment: int = Field(0, ge=0)
    max_appointments_per_user: int = Field(0, ge=0)
    nb_days_for_max_appointments_per_user: int = Field(0, ge=0)
    nb_days_between_appointments: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_people(self):
        if self.max_people_per_appointment > self.max_capacity_per_slot:
            raise ValueError("max_people_per_appointment cannot exceed max_capacity_per_slot")
        return self


class ReservationRuleRead(BaseModel):
    id: int
    form_id: int
    date_of_apply: date
    max_capacity_per_slot: int
    max_people_per_appointment: int
    min_hours_before_appointment: int
    max_appointments_per_user: int
    nb_days_for_max_appointments_per_user: int
    nb_days_between_appointments: int

    model_config = {"from_attributes": True}
