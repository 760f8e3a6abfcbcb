# backend/app/schemas/appointments.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class AppointmentCreate(BaseModel):
    """
    Either slot_id, or form_id with starting_date_time for a slot that is
    only computed so far.
    """
    slot_id: Optional[int] = None
    form_id: Optional[int] = None
    starting_date_time: Optional[datetime] = None

    nb_booked_seats: int = Field(1, gt=0)
    user_id: Optional[int] = None

    @model_validator(mode="after")
    def check_slot_reference(self):
        if self.slot_id is None and (self.form_id is None or self.starting_date_time is None):
            raise ValueError("slot_id or form_id with starting_date_time required")
        return self


class AppointmentRead(BaseModel):
    id: int
    slot_id: int
    user_id: Optional[int] = None

    nb_booked_seats: int
    is_cancelled: bool

    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
