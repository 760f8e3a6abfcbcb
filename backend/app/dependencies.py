# backend/app/dependencies.py

from fastapi import Depends
from sqlalchemy.orm import Session

from .database import get_db
from .services.slots import RedisSlotListener, SlotListener, SlotService


def get_slot_listener() -> SlotListener:
    return RedisSlotListener()


def get_slot_service(
    db: Session = Depends(get_db),
    listener: SlotListener = Depends(get_slot_listener),
) -> SlotService:
    return SlotService(db, listener)
