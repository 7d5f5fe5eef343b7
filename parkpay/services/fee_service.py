# parkpay/services/fee_service.py
"""
Parking fee calculation.

Fee rule: amount = max(elapsed_hours * hourly_rate, hourly_rate / 2), rounded to 2 decimals.
The local-currency amount is amount * exchange_rate.
Rates are read from company settings on every quote, so a tariff change
applies to the very next calculation.
"""

from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session
from parkpay.config import settings
from parkpay.services.settings_service import get_tariffs


@dataclass
class FeeQuote:
    amount: float          # base currency (USD)
    amount_local: float    # amount * exchange_rate
    hourly_rate: float
    exchange_rate: float


def calculate_fee(entered_at: datetime, now: datetime, hourly_rate: float) -> float:
    """Pure fee function. Never below half an hour's rate."""
    elapsed_hours = max((now - entered_at).total_seconds(), 0) / 3600
    return round(max(elapsed_hours * hourly_rate, hourly_rate / 2), 2)


def to_local_currency(amount: float, exchange_rate: float) -> float:
    return round(amount * exchange_rate, 2)


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def is_night(at: time, night_start: str, night_end: str) -> bool:
    """True when wall-clock time `at` falls in [night_start, night_end). The window may wrap midnight."""
    start, end = _parse_hhmm(night_start), _parse_hhmm(night_end)
    if start == end:
        return False
    if start < end:
        return start <= at < end
    return at >= start or at < end


def _local_clock(at: datetime) -> time:
    # Stored timestamps are naive UTC
    return at.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(settings.TIMEZONE)).time()


def hourly_rate_at(tariffs: dict, at: datetime) -> float:
    """Night rate when `at` (naive UTC) is inside the night window, day rate otherwise."""
    if is_night(_local_clock(at), tariffs["night_start"], tariffs["night_end"]):
        return tariffs["night_rate"]
    return tariffs["day_rate"]


def quote_fee(db: Session, entered_at: datetime, now: Optional[datetime] = None) -> FeeQuote:
    now = now or datetime.utcnow()
    tariffs = get_tariffs(db)
    rate = hourly_rate_at(tariffs, now)
    amount = calculate_fee(entered_at, now, rate)
    return FeeQuote(
        amount=amount,
        amount_local=to_local_currency(amount, tariffs["exchange_rate"]),
        hourly_rate=rate,
        exchange_rate=tariffs["exchange_rate"],
    )
