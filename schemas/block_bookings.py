from typing import Optional, List, Dict
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, constr, model_validator, ConfigDict


# Block size and discount limits are enforced by BlockBookingService
# (InvalidBlockSize / InvalidDiscount -> 400).

class RoomTypeCount(BaseModel):
    room_type: constr(strip_whitespace=True, min_length=1, max_length=60)
    room_count: int


class BlockBookingCreate(BaseModel):
    hotel_id: int
    arrival_date: date
    departure_date: date
    room_types: List[RoomTypeCount] = Field(..., min_length=1)
    discount_rate: Decimal = Decimal("0")

    def counts(self) -> Dict[str, int]:
        result: Dict[str, int] = {}
        for line in self.room_types:
            result[line.room_type] = result.get(line.room_type, 0) + line.room_count
        return result


class BlockBookingUpdate(BaseModel):
    arrival_date: Optional[date] = None
    departure_date: Optional[date] = None
    room_types: Optional[List[RoomTypeCount]] = None
    discount_rate: Optional[Decimal] = None

    @model_validator(mode="before")
    def require_some_field(cls, data):
        if isinstance(data, dict) and any(v is not None for v in data.values()):
            return data
        raise ValueError("At least one field is required")

    def to_patch(self) -> dict:
        patch = {
            "arrival_date": self.arrival_date,
            "departure_date": self.departure_date,
            "discount_rate": self.discount_rate,
        }
        if self.room_types is not None:
            counts: Dict[str, int] = {}
            for line in self.room_types:
                counts[line.room_type] = counts.get(line.room_type, 0) + line.room_count
            patch["room_type_counts"] = counts
        return patch


class RoomTypeCountRead(RoomTypeCount):
    id: int

    model_config = ConfigDict(from_attributes=True)


class BlockBookingRead(BaseModel):
    id: int
    hotel_id: int
    travel_company_id: int
    arrival_date: date
    departure_date: date
    nights: int
    discount_rate: Decimal
    total_amount: Decimal
    total_rooms: int
    status: str
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    room_types: List[RoomTypeCountRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
