# backend/app/services/slots/__init__.py
"""
Slot engine.

RuleResolver    → which rules apply to a day
SlotMaterializer → stored + computed slots over a date range
SlotMutator      → single-slot edits, optional shift of the day
CapacityLedger   → seat counters
"""

from .config import BookingConfig, get_booking_config
from .errors import (
    AppointmentNotFound,
    BookingRuleViolation,
    ConcurrentModification,
    InvalidPeriod,
    InvalidSeatCount,
    OpenSlotsOnClosingDay,
    OverbookedSlot,
    RuleNotFound,
    SlotClosed,
    SlotError,
    SlotNotFound,
)
from .ledger import CapacityLedger, LedgerResult, apply_booking, reconcile_capacity_change, release_booking
from .listeners import NullSlotListener, RedisSlotListener, SlotListener
from .materializer import SlotMaterializer, is_specific_slot
from .mutator import SlotMutator
from .rules import RuleResolver, build_templates
from .service import SlotService
from .types import DayRules, Period, ReservationRule, Slot, TimeSlotTemplate, WeekDefinition, WorkingDay

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "AppointmentNotFound",
    "BookingRuleViolation",
    "ConcurrentModification",
    "InvalidPeriod",
    "InvalidSeatCount",
    "OpenSlotsOnClosingDay",
    "OverbookedSlot",
    "RuleNotFound",
    "SlotClosed",
    "SlotError",
    "SlotNotFound",
    "CapacityLedger",
    "LedgerResult",
    "apply_booking",
    "reconcile_capacity_change",
    "release_booking",
    "NullSlotListener",
    "RedisSlotListener",
    "SlotListener",
    "SlotMaterializer",
    "is_specific_slot",
    "SlotMutator",
    "RuleResolver",
    "build_templates",
    "SlotService",
    "DayRules",
    "Period",
    "ReservationRule",
    "Slot",
    "TimeSlotTemplate",
    "WeekDefinition",
    "WorkingDay",
]
