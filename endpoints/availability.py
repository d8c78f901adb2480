"""
Availability and room inventory endpoints (read-only, no locks)
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.connection import get_db
from schemas.reservations import AvailabilityRead, RoomRead
from services.availability_service import AvailabilityService
from services.inventory_service import InventoryService


router = APIRouter(tags=["Availability"])


@router.get("/availability", response_model=AvailabilityRead)
def get_availability(
    hotel_id: int = Query(...),
    room_type: str = Query(..., min_length=1),
    arrival_date: date = Query(...),
    departure_date: date = Query(...),
    db: Session = Depends(get_db),
):
    """Free rooms of a type for [arrival_date, departure_date)"""
    InventoryService.get_hotel(db, hotel_id)
    available = AvailabilityService.available_count(db, hotel_id, room_type, arrival_date, departure_date)
    return AvailabilityRead(
        hotel_id=hotel_id,
        room_type=room_type,
        arrival_date=arrival_date,
        departure_date=departure_date,
        available=available,
    )


@router.get("/availability/summary")
def get_availability_summary(
    hotel_id: int = Query(...),
    arrival_date: date = Query(...),
    departure_date: date = Query(...),
    db: Session = Depends(get_db),
):
    return {
        "hotel_id": hotel_id,
        "arrival_date": arrival_date,
        "departure_date": departure_date,
        "room_types": AvailabilityService.availability_summary(db, hotel_id, arrival_date, departure_date),
    }


@router.get("/hotels/{hotel_id}/rooms", response_model=List[RoomRead])
def list_hotel_rooms(
    hotel_id: int,
    room_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    InventoryService.get_hotel(db, hotel_id)
    return InventoryService.list_rooms(db, hotel_id, room_type)
