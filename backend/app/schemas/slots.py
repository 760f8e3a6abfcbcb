# backend/app/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import datetime, time
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SlotRead(BaseModel):
    """A stored or computed slot. id == 0 means not stored yet."""
    id: int
    form_id: int
    starting_date_time: datetime
    ending_date_time: datetime

    is_open: bool
    is_specific: bool

    max_capacity: int
    nb_remaining_places: int
    nb_potential_remaining_places: int
    nb_places_taken: int

    is_overbooked: bool

    model_config = {"from_attributes": True}


class SlotEdit(BaseModel):
    """Request body for PUT /slots/edit"""
    id: int = Field(0, ge=0, description="Stored slot id, 0 for a computed slot")
    form_id: int
    starting_date_time: datetime
    ending_date_time: datetime

    is_open: bool = True
    max_capacity: int = Field(..., ge=0)

    ending_time_changed: bool = False
    previous_ending_time: Optional[time] = None
    shift: bool = False

    @model_validator(mode="after")
    def check_span(self):
        if self.ending_date_time <= self.starting_date_time:
            raise ValueError("ending_date_time must be after starting_date_time")
        if self.ending_time_changed and self.previous_ending_time is None:
            raise ValueError("previous_ending_time is required when ending_time_changed is set")
        return self


class SeatsRequest(BaseModel):
    """Request body for POST /slots/{id}/book and /slots/{id}/release"""
    nb_seats: int = Field(..., gt=0, description="Number of seats (must be > 0)")


class LedgerResponse(BaseModel):
    """Counters of a slot after a booking or a release."""
    slot: SlotRead
    overbooked: bool

    model_config = {"from_attributes": True}
