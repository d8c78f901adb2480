from typing import Optional, Literal, Dict
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, constr, condecimal, model_validator, ConfigDict, EmailStr


# Date ranges are validated by the services (InvalidDateRange -> 400), not here.

class GuestData(BaseModel):
    guest_name: Optional[constr(strip_whitespace=True, max_length=120)] = None
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[constr(strip_whitespace=True, max_length=30)] = None


class ReservationCreate(GuestData):
    """Online self-service booking"""
    hotel_id: int
    room_type: constr(strip_whitespace=True, min_length=1, max_length=60)
    arrival_date: date
    departure_date: date
    guests: int = Field(1, ge=1)
    pay_at_hotel: bool = False


class WalkInCreate(ReservationCreate):
    """Front desk booking"""
    room_number: Optional[constr(strip_whitespace=True, min_length=1, max_length=10)] = None
    status: Literal["reserved", "checked-in"] = "reserved"
    total_amount: Optional[condecimal(ge=0, max_digits=12, decimal_places=2)] = None


class ReservationUpdate(GuestData):
    room_type: Optional[constr(strip_whitespace=True, min_length=1, max_length=60)] = None
    arrival_date: Optional[date] = None
    departure_date: Optional[date] = None
    guests: Optional[int] = Field(None, ge=1)
    total_amount: Optional[condecimal(ge=0, max_digits=12, decimal_places=2)] = None

    @model_validator(mode="before")
    def require_some_field(cls, data):
        if isinstance(data, dict) and any(v is not None for v in data.values()):
            return data
        raise ValueError("At least one field is required")


class CancelRequest(BaseModel):
    reason: Optional[constr(strip_whitespace=True, max_length=500)] = None


class CheckInRequest(BaseModel):
    room_number: Optional[constr(strip_whitespace=True, min_length=1, max_length=10)] = None


class Incidentals(BaseModel):
    restaurant: condecimal(ge=0, max_digits=12, decimal_places=2) = Decimal("0")
    room_service: condecimal(ge=0, max_digits=12, decimal_places=2) = Decimal("0")
    laundry: condecimal(ge=0, max_digits=12, decimal_places=2) = Decimal("0")
    telephone: condecimal(ge=0, max_digits=12, decimal_places=2) = Decimal("0")
    club: condecimal(ge=0, max_digits=12, decimal_places=2) = Decimal("0")
    other: condecimal(ge=0, max_digits=12, decimal_places=2) = Decimal("0")


class FolioPreviewRequest(BaseModel):
    incidentals: Incidentals = Field(default_factory=Incidentals)
    checkout_at: Optional[datetime] = None


class CheckOutRequest(FolioPreviewRequest):
    payment_method: Optional[constr(strip_whitespace=True, max_length=30)] = None


class ReservationRead(BaseModel):
    id: int
    hotel_id: int
    room_type: str
    room_id: Optional[int] = None
    room_number: Optional[str] = None
    customer_id: Optional[int] = None
    created_by: Optional[str] = None
    created_by_role: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    arrival_date: date
    departure_date: date
    nights: int
    guests: int
    total_amount: Decimal
    status: str
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    customer_notified: bool = False
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BillingRecordRead(BaseModel):
    id: int
    reservation_id: int
    room_charges: Decimal
    restaurant: Decimal
    room_service: Decimal
    laundry: Decimal
    telephone: Decimal
    club: Decimal
    other: Decimal
    late_checkout: Decimal
    total: Decimal
    payment_method: Optional[str] = None
    source: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FolioRead(BaseModel):
    room_charges: Decimal
    price_per_night: Decimal
    scheduled_departure: Optional[date] = None
    checkout_date: Optional[date] = None
    late_days: int
    late_checkout: Decimal
    incidentals: Dict[str, Decimal]
    incidentals_total: Decimal
    total: Decimal


class AvailabilityRead(BaseModel):
    hotel_id: int
    room_type: str
    arrival_date: date
    departure_date: date
    available: int


class RoomRead(BaseModel):
    id: int
    hotel_id: int
    number: str
    type: str
    price_per_night: Decimal
    status: str

    model_config = ConfigDict(from_attributes=True)
