"""
Tests for Invoice Engine
Checkout folio calculation (utils/invoice_engine.py)
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from utils.invoice_engine import (
    compute_folio,
    no_show_folio,
    late_checkout_days,
    _safe_decimal,
    parse_to_date,
    INCIDENTAL_CATEGORIES,
)


class TestHelperFunctions:
    """Helpers"""

    def test_safe_decimal_with_valid_values(self):
        assert _safe_decimal(10) == Decimal("10")
        assert _safe_decimal("25.50") == Decimal("25.50")
        assert _safe_decimal(Decimal("100.99")) == Decimal("100.99")

    def test_safe_decimal_with_none_or_garbage(self):
        assert _safe_decimal(None) == Decimal("0")
        assert _safe_decimal(None, Decimal("10")) == Decimal("10")
        assert _safe_decimal("abc") == Decimal("0")

    def test_parse_to_date_with_string(self):
        assert parse_to_date("2025-01-15") == date(2025, 1, 15)
        assert parse_to_date("2025-12-31T23:59:59Z") == date(2025, 12, 31)

    def test_parse_to_date_with_datetime(self):
        assert parse_to_date(datetime(2025, 6, 20, 14, 30)) == date(2025, 6, 20)

    def test_parse_to_date_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_to_date("not a date")
        with pytest.raises(TypeError):
            parse_to_date(12345)

    def test_late_days_never_negative(self):
        assert late_checkout_days(date(2024, 6, 10), date(2024, 6, 9)) == 0
        assert late_checkout_days(date(2024, 6, 10), datetime(2024, 6, 10, 23, 59)) == 0
        assert late_checkout_days(date(2024, 6, 10), datetime(2024, 6, 11, 0, 5)) == 1


class TestComputeFolio:
    """Folio = room charge + incidentals + late checkout"""

    def test_late_checkout_two_days(self):
        folio = compute_folio(
            room_charge=Decimal("300.00"),
            price_per_night=Decimal("100.00"),
            scheduled_departure=date(2024, 6, 10),
            checkout_at=datetime(2024, 6, 12, 11, 0),
        )
        assert folio.late_days == 2
        assert folio.late_checkout == Decimal("200.00")
        assert folio.total == Decimal("500.00")

    def test_on_time_checkout_has_no_surcharge(self):
        folio = compute_folio(Decimal("200"), Decimal("100"), date(2024, 6, 10), date(2024, 6, 10))
        assert folio.late_checkout == Decimal("0.00")
        assert folio.total == Decimal("200.00")

    def test_early_checkout_is_not_refunded(self):
        folio = compute_folio(Decimal("200"), Decimal("100"), date(2024, 6, 10), date(2024, 6, 8))
        assert folio.late_days == 0
        assert folio.total == Decimal("200.00")

    def test_incidentals_are_added(self):
        folio = compute_folio(
            Decimal("200"),
            Decimal("100"),
            date(2024, 6, 10),
            date(2024, 6, 10),
            {"restaurant": "45.50", "laundry": 10, "club": Decimal("4.50")},
        )
        assert folio.incidentals["restaurant"] == Decimal("45.50")
        assert folio.incidentals["room_service"] == Decimal("0.00")
        assert folio.incidentals_total == Decimal("60.00")
        assert folio.total == Decimal("260.00")

    def test_negative_incidental_rejected(self):
        with pytest.raises(ValueError):
            compute_folio(Decimal("200"), Decimal("100"), date(2024, 6, 10), date(2024, 6, 10), {"telephone": -1})

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            compute_folio(Decimal("200"), Decimal("100"), date(2024, 6, 10), date(2024, 6, 10), {"minibar": 5})

    def test_billing_fields_cover_every_category(self):
        folio = compute_folio(Decimal("200"), Decimal("100"), date(2024, 6, 10), date(2024, 6, 11))
        fields = folio.as_billing_fields()
        for name in INCIDENTAL_CATEGORIES:
            assert name in fields
        assert fields["late_checkout"] == Decimal("100.00")
        assert fields["total"] == Decimal("300.00")

    def test_money_is_rounded_to_cents(self):
        folio = compute_folio("100.005", "0", date(2024, 6, 10), date(2024, 6, 10))
        assert folio.room_charges == Decimal("100.01")


class TestNoShowFolio:

    def test_full_amount_nothing_else(self):
        folio = no_show_folio(Decimal("450"))
        assert folio.room_charges == Decimal("450.00")
        assert folio.total == Decimal("450.00")
        assert folio.late_checkout == Decimal("0.00")
        assert folio.incidentals_total == Decimal("0.00")
