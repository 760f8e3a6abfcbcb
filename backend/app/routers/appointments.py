# backend/app/routers/appointments.py
# PATCH = 405, cancel = POST /{id}/cancel, DELETE = ALLOWED (hard, seats released)

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_slot_service
from ..models.generated import Appointments as DBAppointments
from ..schemas.appointments import AppointmentCreate, AppointmentRead
from ..services.appointments import (
    cancel_appointment,
    create_appointment,
    delete_appointment,
)
from ..services.slots import SlotService

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("/{id}", response_model=AppointmentRead)
def get_appointment(id: int, service: SlotService = Depends(get_slot_service)):
    obj = service.db.get(DBAppointments, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post(
    "/", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED
)
def book_appointment(data: AppointmentCreate, service: SlotService = Depends(get_slot_service)):
    return create_appointment(
        service,
        nb_booked_seats=data.nb_booked_seats,
        slot_id=data.slot_id,
        form_id=data.form_id,
        starting_date_time=data.starting_date_time,
        user_id=data.user_id,
    )


@router.post("/{id}/cancel", response_model=AppointmentRead)
def cancel(id: int, service: SlotService = Depends(get_slot_service)):
    return cancel_appointment(service, id)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_appointment(id: int, service: SlotService = Depends(get_slot_service)):
    delete_appointment(service, id)
