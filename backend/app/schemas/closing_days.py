# backend/app/schemas/closing_days.py

from datetime import date

from pydantic import BaseModel, Field


class ClosingDaysCreate(BaseModel):
    form_id: int
    dates: list[date] = Field(..., min_length=1)


class ClosingDayRead(BaseModel):
    id: int
    form_id: int
    date_of_closing_day: date

    model_config = {"from_attributes": True}
