"""
Freshness and availability rules for storage entries.

Everything here is a pure function of its arguments; the reference date
("today") is always passed in by the caller.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from core.errors import InvalidArgument, NotFound

DEFAULT_LOOKAHEAD_DAYS = 14
# 100 years
MAX_EXPIRATION_MONTHS = 1200


class FreshnessStatus(str, Enum):
    FRESH = "Fresh"
    EXPIRING_SOON = "ExpiringSoon"
    EXPIRED = "Expired"


def add_months(d: date, months: int) -> date:
    """Calendar-month addition; the day is clamped to the end of the target month.

    Raises InvalidArgument when the result falls outside the supported date range.
    """
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    if not date.min.year <= year <= date.max.year:
        raise InvalidArgument(f"{d.isoformat()} + {months} months is out of the supported date range")
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def expires_on(date_in: date, expiration_months: int) -> date:
    return add_months(date_in, expiration_months)


def freshness_status(
    date_in: date,
    expiration_months: int,
    today: date,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> FreshnessStatus:
    expiry = expires_on(date_in, expiration_months)
    if today >= expiry:
        return FreshnessStatus.EXPIRED
    if (expiry - today).days <= lookahead_days:
        return FreshnessStatus.EXPIRING_SOON
    return FreshnessStatus.FRESH


@dataclass(frozen=True)
class ExpirationData:
    date_in: date
    expires_on: date
    expiration_months: int
    # negative once the entry has expired
    expires_in_days: int
    status: FreshnessStatus

    @classmethod
    def compute(
        cls,
        date_in: date,
        expiration_months: int,
        today: date,
        lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    ) -> "ExpirationData":
        expiry = expires_on(date_in, expiration_months)
        return cls(
            date_in=date_in,
            expires_on=expiry,
            expiration_months=expiration_months,
            expires_in_days=(expiry - today).days,
            status=freshness_status(date_in, expiration_months, today, lookahead_days),
        )


def validate_check_out(storage_id: int, available: bool, date_in: date, date_out: Optional[date]) -> None:
    """Guard for the available -> unavailable latch.

    There is no way back: restocking creates a new storage entry.
    """
    if not available:
        raise NotFound(f"Storage entry {storage_id} is not available (already checked out)")
    if date_out is None:
        raise InvalidArgument("date_out is required")
    if date_out < date_in:
        raise InvalidArgument(
            f"date_out {date_out.isoformat()} is earlier than date_in {date_in.isoformat()}"
        )
