# backend/app/routers/slots.py
"""
Slots API endpoints.

GET  /slots              - Stored and computed slots of a form over a range
GET  /slots/specific     - Slots edited away from their template
GET  /slots/max_date     - Latest stored slot of a form
GET  /slots/{id}         - One stored slot
PUT  /slots/edit         - Edit a slot, optionally shifting the rest of its day
POST /slots/{id}/book    - Take seats
POST /slots/{id}/release - Give seats back
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_slot_service
from ..schemas.slots import LedgerResponse, SeatsRequest, SlotEdit, SlotRead
from ..services.slots import LedgerResult, Slot, SlotService
from ..services.slots.service import default_range

router = APIRouter(prefix="/slots", tags=["slots"])


# Slot and LedgerResult are dataclasses: converted here so their computed
# properties (is_overbooked, overbooked) reach the response
def _ledger_response(result: LedgerResult) -> LedgerResponse:
    return LedgerResponse(slot=SlotRead.model_validate(result.slot), overbooked=result.overbooked)


@router.get("/", response_model=list[SlotRead])
def list_slots(
    form_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    service: SlotService = Depends(get_slot_service),
):
    """Slots of a form. start_date defaults to today, end_date to start_date + horizon_days."""
    start_date, end_date = default_range(service.config, start_date, end_date)
    return [SlotRead.model_validate(s) for s in service.get_slots(form_id, start_date, end_date)]


@router.get("/specific", response_model=list[SlotRead])
def list_specific_slots(form_id: int, service: SlotService = Depends(get_slot_service)):
    return [SlotRead.model_validate(s) for s in service.find_specific_slots(form_id)]


@router.get("/max_date", response_model=SlotRead)
def get_slot_with_max_date(form_id: int, service: SlotService = Depends(get_slot_service)):
    slot = service.find_slot_with_max_date(form_id)
    if slot is None:
        raise HTTPException(status_code=404, detail="Not found")
    return SlotRead.model_validate(slot)


@router.put("/edit", response_model=SlotRead)
def edit_slot(data: SlotEdit, service: SlotService = Depends(get_slot_service)):
    # Counters of a stored slot are taken from the database, not the request
    slot = Slot(
        form_id=data.form_id,
        starting_date_time=data.starting_date_time,
        ending_date_time=data.ending_date_time,
        max_capacity=data.max_capacity,
        nb_remaining_places=data.max_capacity,
        nb_potential_remaining_places=data.max_capacity,
        is_open=data.is_open,
        id=data.id,
    )
    saved = service.edit_slot(
        slot,
        ending_time_changed=data.ending_time_changed,
        previous_ending_time=data.previous_ending_time,
        shift=data.shift,
    )
    return SlotRead.model_validate(saved)


@router.get("/{id}", response_model=SlotRead)
def get_slot(id: int, service: SlotService = Depends(get_slot_service)):
    slot = service.get_slot(id)
    if slot is None:
        raise HTTPException(status_code=404, detail="Not found")
    return SlotRead.model_validate(slot)


@router.post("/{id}/book", response_model=LedgerResponse)
def book_seats(id: int, data: SeatsRequest, service: SlotService = Depends(get_slot_service)):
    return _ledger_response(service.book_seats(id, data.nb_seats))


@router.post("/{id}/release", response_model=LedgerResponse)
def release_seats(id: int, data: SeatsRequest, service: SlotService = Depends(get_slot_service)):
    return _ledger_response(service.release_seats(id, data.nb_seats))
