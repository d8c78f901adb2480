"""
Block booking endpoints (travel companies request, managers decide)
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database.connection import get_db
from schemas.auth import Principal
from schemas.block_bookings import BlockBookingCreate, BlockBookingUpdate, BlockBookingRead
from services.block_booking_service import BlockBookingService
from utils.dependencies import get_current_principal, require_manager, require_travel_company


router = APIRouter(prefix="/block-bookings", tags=["Block bookings"])


@router.post("", response_model=BlockBookingRead, status_code=status.HTTP_201_CREATED)
def create_block_booking(
    payload: BlockBookingCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_travel_company),
):
    return BlockBookingService.create(
        db,
        hotel_id=payload.hotel_id,
        company_id=principal.company_id,
        arrival_date=payload.arrival_date,
        departure_date=payload.departure_date,
        room_type_counts=payload.counts(),
        discount_rate=payload.discount_rate,
        principal=principal,
    )


@router.get("", response_model=List[BlockBookingRead])
def list_block_bookings(
    hotel_id: Optional[int] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return BlockBookingService.list_for_principal(db, principal, hotel_id, status_filter)


@router.get("/{block_booking_id}", response_model=BlockBookingRead)
def get_block_booking(
    block_booking_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return BlockBookingService.get(db, block_booking_id, principal)


@router.put("/{block_booking_id}", response_model=BlockBookingRead)
def update_block_booking(
    block_booking_id: int,
    payload: BlockBookingUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_travel_company),
):
    return BlockBookingService.update(db, block_booking_id, payload.to_patch(), principal)


@router.post("/{block_booking_id}/approve", response_model=BlockBookingRead)
def approve_block_booking(
    block_booking_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    return BlockBookingService.approve(db, block_booking_id, principal)


@router.post("/{block_booking_id}/reject", response_model=BlockBookingRead)
def reject_block_booking(
    block_booking_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    return BlockBookingService.reject(db, block_booking_id, principal)


@router.post("/{block_booking_id}/cancel", response_model=BlockBookingRead)
def cancel_block_booking(
    block_booking_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_travel_company),
):
    return BlockBookingService.cancel(db, block_booking_id, principal)
