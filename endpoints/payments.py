"""
Payment collaborator hook.
The payment provider integration lives outside the core; it only reports
that a reservation has been paid.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.connection import get_db
from schemas.auth import Principal
from schemas.reservations import ReservationRead
from services.reservation_service import ReservationService
from utils.dependencies import require_staff


router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/reservations/{reservation_id}/paid", response_model=ReservationRead)
def mark_reservation_paid(
    reservation_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    return ReservationService.mark_paid(db, reservation_id, principal.user_id)
