"""
Reservation endpoints
Online booking, front desk walk-ins, changes, cancellation, check-in / check-out.
Domain errors are rendered by the ReservationError handler in main.py.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database.connection import get_db
from schemas.auth import Principal
from schemas.reservations import (
    ReservationCreate, WalkInCreate, ReservationUpdate, ReservationRead, CancelRequest,
    CheckInRequest, CheckOutRequest, FolioPreviewRequest, BillingRecordRead, FolioRead,
)
from services.reservation_service import ReservationService
from utils.dependencies import get_current_principal, require_staff


router = APIRouter(prefix="/reservations", tags=["Reservations"])


def _guest(payload) -> dict:
    return {
        "guest_name": payload.guest_name,
        "guest_email": payload.guest_email,
        "guest_phone": payload.guest_phone,
    }


def _incidentals(payload) -> dict:
    return payload.incidentals.model_dump()


@router.post("", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Online booking: pending_payment (or pending when paying at the hotel)"""
    return ReservationService.create(
        db,
        hotel_id=payload.hotel_id,
        room_type=payload.room_type,
        arrival_date=payload.arrival_date,
        departure_date=payload.departure_date,
        guest=_guest(payload),
        principal=principal,
        guests=payload.guests,
        pay_at_hotel=payload.pay_at_hotel,
    )


@router.post("/walk-in", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
def create_walk_in(
    payload: WalkInCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    """Front desk booking: reserved, or checked-in on the spot"""
    return ReservationService.create(
        db,
        hotel_id=payload.hotel_id,
        room_type=payload.room_type,
        arrival_date=payload.arrival_date,
        departure_date=payload.departure_date,
        guest=_guest(payload),
        principal=principal,
        guests=payload.guests,
        room_number=payload.room_number,
        status=payload.status,
        total_amount=payload.total_amount,
    )


@router.get("", response_model=List[ReservationRead])
def list_reservations(
    hotel_id: Optional[int] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    arrival_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ReservationService.list_for_principal(db, principal, hotel_id, status_filter, arrival_date)


@router.get("/{reservation_id}", response_model=ReservationRead)
def get_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ReservationService.get(db, reservation_id, principal)


@router.put("/{reservation_id}", response_model=ReservationRead)
def update_reservation(
    reservation_id: int,
    payload: ReservationUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ReservationService.update(db, reservation_id, payload.model_dump(exclude_unset=True), principal)


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ReservationService.delete(db, reservation_id, principal)


@router.post("/{reservation_id}/cancel", response_model=ReservationRead)
def cancel_reservation(
    reservation_id: int,
    payload: Optional[CancelRequest] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    reason = payload.reason if payload else None
    return ReservationService.cancel(db, reservation_id, principal, reason)


@router.patch("/{reservation_id}/mark-notified", response_model=ReservationRead)
def mark_notified(
    reservation_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ReservationService.mark_notified(db, reservation_id, principal)


@router.post("/{reservation_id}/check-in", response_model=ReservationRead)
def check_in(
    reservation_id: int,
    payload: Optional[CheckInRequest] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    room_number = payload.room_number if payload else None
    return ReservationService.check_in(db, reservation_id, principal, room_number)


@router.post("/{reservation_id}/check-out", response_model=BillingRecordRead)
def check_out(
    reservation_id: int,
    payload: Optional[CheckOutRequest] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    payload = payload or CheckOutRequest()
    return ReservationService.check_out(
        db,
        reservation_id,
        principal,
        incidentals=_incidentals(payload),
        payment_method=payload.payment_method,
        checkout_at=payload.checkout_at,
    )


@router.post("/{reservation_id}/folio-preview", response_model=FolioRead)
def folio_preview(
    reservation_id: int,
    payload: Optional[FolioPreviewRequest] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    """Checkout folio as it would be billed now, nothing persisted"""
    payload = payload or FolioPreviewRequest()
    folio = ReservationService.folio_preview(
        db, reservation_id, principal, incidentals=_incidentals(payload), checkout_at=payload.checkout_at
    )
    return folio.to_dict()
