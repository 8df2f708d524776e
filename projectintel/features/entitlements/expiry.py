"""
projectintel/features/entitlements/expiry.py

Subscription expiry status.

Three states relative to `now`:
- EXPIRED: end date is in the past
- EXPIRING: not expired and at most EXPIRY_WARNING_DAYS days left
- ACTIVE: otherwise; remaining time is reported in calendar months
"""

import calendar
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from projectintel.models.timestamps import as_utc, utc_now


EXPIRING_WINDOW_DAYS = 30
RENEWAL_WARNING = "Your subscription is about to expire. Please renew it."


class ExpiryState(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRING = "EXPIRING"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class ExpiryStatus:
    status: ExpiryState
    days_remaining: int
    months_remaining: int

    @property
    def is_expired(self) -> bool:
        return self.status is ExpiryState.EXPIRED

    @property
    def is_expiring(self) -> bool:
        return self.status is ExpiryState.EXPIRING


@dataclass(frozen=True)
class RemainingTime:
    text: str
    value: int
    unit: str


def _normalize_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return utc_now()
    return as_utc(now)


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar-month addition, clamping the day to the target month's length."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def get_days_remaining(end_date: datetime, now: Optional[datetime] = None) -> int:
    current = _normalize_now(now)
    return math.ceil((as_utc(end_date) - current) / timedelta(days=1))


def get_months_remaining(end_date: datetime, now: Optional[datetime] = None) -> int:
    """Count whole calendar months that fit between now and end_date."""
    current = _normalize_now(now)
    end = as_utc(end_date)
    months = 0
    # Each step is measured from `now` so short months do not drift the cursor
    while add_months(current, months + 1) <= end:
        months += 1
    return months


def get_expiry_status(end_date: datetime, now: Optional[datetime] = None, window_days: int = EXPIRING_WINDOW_DAYS) -> ExpiryStatus:
    current = _normalize_now(now)
    end = as_utc(end_date)

    if end < current:
        return ExpiryStatus(ExpiryState.EXPIRED, days_remaining=0, months_remaining=0)

    days = get_days_remaining(end, current)
    if days <= window_days:
        return ExpiryStatus(ExpiryState.EXPIRING, days_remaining=days, months_remaining=0)

    return ExpiryStatus(
        ExpiryState.ACTIVE,
        days_remaining=days,
        months_remaining=get_months_remaining(end, current),
    )


def is_expired(end_date: datetime, now: Optional[datetime] = None) -> bool:
    return _normalize_now(now) > as_utc(end_date)


def is_expiring_soon(end_date: datetime, now: Optional[datetime] = None, window_days: int = EXPIRING_WINDOW_DAYS) -> bool:
    days = get_days_remaining(end_date, now)
    return 0 < days <= window_days


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'} remaining"


def format_remaining_time(end_date: datetime, now: Optional[datetime] = None, window_days: int = EXPIRING_WINDOW_DAYS) -> RemainingTime:
    status = get_expiry_status(end_date, now, window_days)

    if status.is_expired:
        return RemainingTime(text="Expired", value=0, unit="days")
    if status.is_expiring:
        return RemainingTime(
            text=_plural(status.days_remaining, "day"),
            value=status.days_remaining,
            unit="days",
        )
    return RemainingTime(
        text=_plural(status.months_remaining, "month"),
        value=status.months_remaining,
        unit="months",
    )
