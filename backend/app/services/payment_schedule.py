"""
Payment Schedule Service

All frequency arithmetic used by the employee, payroll, analytics and
ledger code lives here:

- Payment interval: WEEKLY=7d, BIWEEKLY=14d, MONTHLY=30d, QUARTERLY=90d
- Due check: now - last_payment >= interval (never paid is always due)
- Monthly equivalent: x4.33 weekly, x2.17 biweekly, x1 monthly, /3 quarterly
- Annual cost: x52 weekly, x26 biweekly, x12 monthly, x4 quarterly

Amounts are handled as Decimal and rendered with four decimals.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

AmountLike = Union[str, int, float, Decimal, None]


class PaymentFrequency(str, Enum):
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"


_INTERVAL_DAYS = {
    PaymentFrequency.WEEKLY: 7,
    PaymentFrequency.BIWEEKLY: 14,
    PaymentFrequency.MONTHLY: 30,
    PaymentFrequency.QUARTERLY: 90,
}

_MONTHLY_FACTOR = {
    PaymentFrequency.WEEKLY: Decimal("4.33"),
    PaymentFrequency.BIWEEKLY: Decimal("2.17"),
    PaymentFrequency.MONTHLY: Decimal("1"),
    PaymentFrequency.QUARTERLY: Decimal("1") / Decimal("3"),
}

_PAYMENTS_PER_YEAR = {
    PaymentFrequency.WEEKLY: 52,
    PaymentFrequency.BIWEEKLY: 26,
    PaymentFrequency.MONTHLY: 12,
    PaymentFrequency.QUARTERLY: 4,
}

_FOUR_PLACES = Decimal("0.0001")


def parse_frequency(frequency) -> Optional[PaymentFrequency]:
    """Map an enum member or its (case-insensitive) name to a frequency, None if unknown."""
    if isinstance(frequency, PaymentFrequency):
        return frequency
    try:
        return PaymentFrequency(str(frequency).upper())
    except ValueError:
        return None


def to_decimal(value: AmountLike) -> Decimal:
    """Parse an amount; anything unparsable counts as zero."""
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def payment_interval(frequency) -> timedelta:
    """Interval between payments; unknown frequencies fall back to monthly."""
    freq = parse_frequency(frequency) or PaymentFrequency.MONTHLY
    return timedelta(days=_INTERVAL_DAYS[freq])


def is_payment_due(
    last_payment: Optional[datetime],
    frequency,
    now: Optional[datetime] = None,
) -> bool:
    """
    Check whether a payment is due.

    Args:
        last_payment: Time of the last payment, None if never paid
        frequency: Payment frequency
        now: Reference time (defaults to utcnow)

    Returns:
        True when at least one full interval has elapsed
    """
    if last_payment is None:
        return True
    now = now or datetime.utcnow()
    return now - last_payment >= payment_interval(frequency)


def next_payment_due(
    last_payment: Optional[datetime],
    frequency,
    now: Optional[datetime] = None,
) -> datetime:
    """Date the next payment falls due; a never-paid employee is due now."""
    if last_payment is None:
        return now or datetime.utcnow()
    return last_payment + payment_interval(frequency)


def monthly_equivalent(amount: AmountLike, frequency) -> Decimal:
    freq = parse_frequency(frequency) or PaymentFrequency.MONTHLY
    return to_decimal(amount) * _MONTHLY_FACTOR[freq]


def annual_cost(amount: AmountLike, frequency) -> Decimal:
    freq = parse_frequency(frequency) or PaymentFrequency.MONTHLY
    return to_decimal(amount) * _PAYMENTS_PER_YEAR[freq]


def format_amount(value: AmountLike) -> str:
    """Render an amount with exactly four decimals, e.g. ``"1.5000"``."""
    return str(to_decimal(value).quantize(_FOUR_PLACES))


def as_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
