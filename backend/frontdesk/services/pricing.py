"""Stay length and money arithmetic for bookings.

All amounts are Decimal, rounded to cents. A stay always counts at least
one night, whichever call site asks.
"""

import math
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from frontdesk.models.enums import PaymentStatus
from frontdesk.schemas.booking import PriceQuote

CENT = Decimal("0.01")
SECONDS_PER_DAY = 86400

DateLike = Union[date, datetime]
Amount = Union[Decimal, int, float, str]


def to_money(value: Amount) -> Decimal:
    """Coerce to a cent-rounded Decimal (floats go through str to avoid binary noise)."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def calculate_nights(check_in: DateLike, check_out: DateLike) -> int:
    """Number of billable nights: ceil of the day difference, never below 1."""
    delta = _as_datetime(check_out) - _as_datetime(check_in)
    nights = math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
    return max(1, nights)


def calculate_total(nights: int, price_per_night: Amount) -> Decimal:
    return to_money(Decimal(nights) * to_money(price_per_night))


def quote_stay(check_in: DateLike, check_out: DateLike, price_per_night: Amount) -> PriceQuote:
    """Price a stay at the given nightly rate."""
    nights = calculate_nights(check_in, check_out)
    return PriceQuote(
        nights=nights,
        price_per_night=to_money(price_per_night),
        total=calculate_total(nights, price_per_night),
    )


def outstanding_amount(total_amount: Amount, paid_amount: Amount) -> Decimal:
    """Amount still owed; overpayment reports zero, never a negative balance."""
    balance = to_money(total_amount) - to_money(paid_amount or 0)
    return max(balance, Decimal("0.00"))


def payment_status(total_amount: Amount, paid_amount: Amount) -> PaymentStatus:
    total = to_money(total_amount)
    paid = to_money(paid_amount or 0)
    if paid >= total and total > 0:
        return PaymentStatus.PAID
    if paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def validate_payment(total_amount: Amount, paid_amount: Amount) -> Decimal:
    """Return the paid amount, rejecting negatives and overpayment.

    Raises:
        ValueError: If paid is negative or exceeds total.
    """
    total = to_money(total_amount)
    paid = to_money(paid_amount)
    if paid < 0:
        raise ValueError("paid_amount must not be negative")
    if paid > total:
        raise ValueError(f"paid_amount {paid} exceeds total_amount {total}")
    return paid


def format_price(amount: Amount, currency_symbol: str = "$") -> str:
    return f"{currency_symbol}{to_money(amount):.2f}"
