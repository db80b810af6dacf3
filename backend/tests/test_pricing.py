"""Nights, totals and payment arithmetic."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from frontdesk.models.enums import PaymentStatus
from frontdesk.services.pricing import (
    calculate_nights,
    calculate_total,
    format_price,
    outstanding_amount,
    payment_status,
    quote_stay,
    to_money,
    validate_payment,
)


class TestNights:
    def test_three_night_stay(self):
        assert calculate_nights(date(2024, 1, 1), date(2024, 1, 4)) == 3

    def test_partial_day_rounds_up(self):
        check_in = datetime(2024, 1, 1, 14, 0, tzinfo=timezone.utc)
        check_out = datetime(2024, 1, 4, 11, 0, tzinfo=timezone.utc)
        assert calculate_nights(check_in, check_out) == 3

        late_check_out = datetime(2024, 1, 4, 15, 0, tzinfo=timezone.utc)
        assert calculate_nights(check_in, late_check_out) == 4

    @pytest.mark.parametrize(
        "check_in, check_out",
        [
            (date(2024, 1, 1), date(2024, 1, 1)),
            (date(2024, 1, 4), date(2024, 1, 1)),
        ],
    )
    def test_never_below_one(self, check_in, check_out):
        assert calculate_nights(check_in, check_out) == 1

    def test_naive_datetimes_are_utc(self):
        assert calculate_nights(datetime(2024, 1, 1), date(2024, 1, 2)) == 1


class TestTotals:
    def test_quote(self):
        quote = quote_stay(date(2024, 1, 1), date(2024, 1, 4), Decimal("100.00"))
        assert quote.nights == 3
        assert quote.total == Decimal("300.00")
        assert quote.price_per_night == Decimal("100.00")

    def test_total_rounds_to_cents(self):
        assert calculate_total(3, 33.333) == Decimal("99.99")
        assert calculate_total(2, "0.105") == Decimal("0.22")

    def test_float_input_has_no_binary_noise(self):
        assert to_money(0.1 + 0.2) == Decimal("0.30")


class TestPayments:
    def test_outstanding(self):
        assert outstanding_amount(300, 100) == Decimal("200.00")
        assert outstanding_amount(300, None) == Decimal("300.00")

    def test_outstanding_never_negative(self):
        assert outstanding_amount(100, 150) == Decimal("0.00")

    @pytest.mark.parametrize(
        "total, paid, expected",
        [
            (300, 0, PaymentStatus.UNPAID),
            (300, 100, PaymentStatus.PARTIAL),
            (300, 300, PaymentStatus.PAID),
            (300, 400, PaymentStatus.PAID),
            (0, 0, PaymentStatus.UNPAID),
        ],
    )
    def test_payment_status(self, total, paid, expected):
        assert payment_status(total, paid) == expected

    def test_validate_payment(self):
        assert validate_payment(300, 300) == Decimal("300.00")
        with pytest.raises(ValueError, match="exceeds"):
            validate_payment(300, "300.01")
        with pytest.raises(ValueError, match="negative"):
            validate_payment(300, -1)

    def test_format_price(self):
        assert format_price(100) == "$100.00"
        assert format_price("12.5", "€") == "€12.50"
