"""
Invoice Engine - folio calculation at checkout
SINGLE SOURCE OF TRUTH for checkout, folio preview and no-show billing.

Pure functions: no session, no side effects. ReservationService is the only
caller allowed to persist the result as a BillingRecord.
"""

from datetime import datetime, date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Mapping, Optional, Any


INCIDENTAL_CATEGORIES = (
    "restaurant",
    "room_service",
    "laundry",
    "telephone",
    "club",
    "other",
)

_CENT = Decimal("0.01")


def _safe_decimal(value, fallback: Decimal = Decimal("0")) -> Decimal:
    """Converts to Decimal, falling back on None or garbage"""
    if value is None:
        return fallback
    try:
        if isinstance(value, Decimal):
            return value
        return Decimal(str(value))
    except (ValueError, TypeError, ArithmeticError):
        return fallback


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def parse_to_date(value) -> date:
    """Converts string/datetime/date to date (time of day dropped)"""
    if value is None:
        raise ValueError("Date value is None")

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except ValueError:
            try:
                return datetime.strptime(value, '%Y-%m-%d').date()
            except ValueError:
                raise ValueError(f"Invalid date format: {value}")

    raise TypeError(f"Unsupported date type: {type(value)}")


def late_checkout_days(scheduled_departure, actual_checkout) -> int:
    """
    Full calendar days between the scheduled departure date and the actual checkout.
    Any time on the departure date is free; each day (full or partial) after it counts as one night.
    """
    days = (parse_to_date(actual_checkout) - parse_to_date(scheduled_departure)).days
    return max(0, days)


class FolioCalculation:
    """Result of the folio calculation"""

    def __init__(self):
        self.room_charges: Decimal = Decimal("0.00")
        self.price_per_night: Decimal = Decimal("0.00")
        self.scheduled_departure: Optional[date] = None
        self.checkout_date: Optional[date] = None
        self.late_days: int = 0
        self.late_checkout: Decimal = Decimal("0.00")
        self.incidentals: Dict[str, Decimal] = {name: Decimal("0.00") for name in INCIDENTAL_CATEGORIES}
        self.incidentals_total: Decimal = Decimal("0.00")
        self.total: Decimal = Decimal("0.00")

    def as_billing_fields(self) -> Dict[str, Decimal]:
        """Column values for a BillingRecord"""
        fields = {
            "room_charges": self.room_charges,
            "late_checkout": self.late_checkout,
            "total": self.total,
        }
        fields.update(self.incidentals)
        return fields

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_charges": self.room_charges,
            "price_per_night": self.price_per_night,
            "scheduled_departure": self.scheduled_departure,
            "checkout_date": self.checkout_date,
            "late_days": self.late_days,
            "late_checkout": self.late_checkout,
            "incidentals": dict(self.incidentals),
            "incidentals_total": self.incidentals_total,
            "total": self.total,
        }


def compute_folio(
    room_charge,
    price_per_night,
    scheduled_departure,
    checkout_at,
    incidentals: Optional[Mapping[str, Any]] = None,
) -> FolioCalculation:
    """
    Computes the guest folio.

    Args:
        room_charge: reservation total_amount (already covers the booked nights)
        price_per_night: nightly price of the bound room, used for the late fee
        scheduled_departure: reservation departure date
        checkout_at: actual checkout instant (date or datetime)
        incidentals: {category: amount}, categories in INCIDENTAL_CATEGORIES, each >= 0

    Returns:
        FolioCalculation with total = room_charge + sum(incidentals) + late_checkout

    Raises:
        ValueError on unknown categories or negative amounts
    """
    result = FolioCalculation()

    result.room_charges = _money(_safe_decimal(room_charge))
    result.price_per_night = _money(_safe_decimal(price_per_night))
    if result.room_charges < 0 or result.price_per_night < 0:
        raise ValueError("Room charge and nightly price must be >= 0")

    for name, amount in (incidentals or {}).items():
        if name not in result.incidentals:
            raise ValueError(f"Unknown incidental category: {name}")
        value = _money(_safe_decimal(amount))
        if value < 0:
            raise ValueError(f"Incidental '{name}' must be >= 0")
        result.incidentals[name] = value
    result.incidentals_total = _money(sum(result.incidentals.values(), Decimal("0")))

    result.scheduled_departure = parse_to_date(scheduled_departure)
    result.checkout_date = parse_to_date(checkout_at)
    result.late_days = late_checkout_days(result.scheduled_departure, result.checkout_date)
    result.late_checkout = _money(result.price_per_night * result.late_days)

    result.total = _money(result.room_charges + result.incidentals_total + result.late_checkout)
    return result


def no_show_folio(total_amount) -> FolioCalculation:
    """No-show: the whole reservation amount, nothing else (the stay never happened)."""
    result = FolioCalculation()
    result.room_charges = _money(_safe_decimal(total_amount))
    result.total = result.room_charges
    return result
