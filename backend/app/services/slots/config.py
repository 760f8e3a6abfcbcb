# backend/app/services/slots/config.py
"""
Configuration of the slot engine.
"""

from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the slots system.

    Attributes:
        horizon_days: Range length served by GET /slots when no end is given
        max_range_days: Longest range materialized in one call
        max_write_retries: Attempts of a counter update before a conflict is reported
    """
    horizon_days: int = 60
    max_range_days: int = 366
    max_write_retries: int = 3

    def __post_init__(self):
        """Validate configuration."""
        if self.horizon_days < 0:
            raise ValueError(f"horizon_days must be >= 0, got {self.horizon_days}")
        if self.max_range_days < 1:
            raise ValueError(f"max_range_days must be >= 1, got {self.max_range_days}")
        if self.horizon_days >= self.max_range_days:
            raise ValueError(
                f"horizon_days ({self.horizon_days}) must be shorter than max_range_days ({self.max_range_days})"
            )
        if self.max_write_retries < 1:
            raise ValueError(f"max_write_retries must be >= 1, got {self.max_write_retries}")


@lru_cache
def get_booking_config() -> BookingConfig:
    """
    Get booking configuration (singleton).

    In the future, this can read from environment or database.
    """
    return BookingConfig()
