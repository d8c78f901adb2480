"""
Manager reports and reconciliation ops
"""
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.connection import get_db
from schemas.auth import Principal
from services import reconciliation_scheduler
from services.reconciliation_service import ReconciliationService
from services.report_service import ReportService
from utils.dependencies import require_manager
from utils.logging_utils import log_event
from utils.timezone import get_operational_date


router = APIRouter(prefix="/reports", tags=["Reports"])


def _default_range(start_date: Optional[date], end_date: Optional[date]):
    today = get_operational_date()
    start_date = start_date or today - timedelta(days=30)
    end_date = end_date or today + timedelta(days=1)
    return start_date, end_date


@router.get("/occupancy")
def occupancy_report(
    hotel_id: int = Query(...),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    start_date, end_date = _default_range(start_date, end_date)
    log_event("reports", principal.user_id, "Occupancy report", f"hotel_id={hotel_id} {start_date}..{end_date}")
    return ReportService.occupancy(db, hotel_id, start_date, end_date)


@router.get("/revenue")
def revenue_report(
    hotel_id: int = Query(...),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    start_date, end_date = _default_range(start_date, end_date)
    log_event("reports", principal.user_id, "Revenue report", f"hotel_id={hotel_id} {start_date}..{end_date}")
    return ReportService.revenue(db, hotel_id, start_date, end_date)


@router.get("/reconciliation/status")
def reconciliation_status(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    last = ReconciliationService.last_run(db)
    result = reconciliation_scheduler.get_status()
    result["last_persisted_run"] = None if last is None else {
        "operating_day": last.operating_day.isoformat(),
        "status": last.status,
        "started_at": last.started_at,
        "finished_at": last.finished_at,
        "summary": last.summary,
    }
    return result


@router.post("/reconciliation/run")
def run_reconciliation_now(
    operating_day: Optional[date] = Query(None),
    force: bool = Query(False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_manager),
):
    """Manual trigger; same guards as the daily job"""
    log_event("reconciliation", principal.user_id, "Manual run", f"day={operating_day} force={force}")
    return reconciliation_scheduler.run_reconciliation(operating_day, force=force, db=db)
