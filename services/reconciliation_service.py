"""
Daily reconciliation (run once per operating day at the cutoff)
1. Auto-cancel unpaid reservations arriving today
2. No-show + billing for reserved / confirmed reservations that arrived yesterday
3. Occupancy / revenue summary of yesterday's arrivals

Each reservation is handled in its own transaction. The ReconciliationRun row
per operating day keeps reruns idempotent across workers and restarts.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import AUTO_CANCEL_REASON, RECONCILIATION_STALE_MINUTES
from models.core import Reservation, ReservationStatus, UNPAID_STATES
from models.reconciliation import ReconciliationRun, RunStatus
from schemas.auth import SYSTEM_PRINCIPAL
from services.reservation_service import ReservationService
from utils.logging_utils import log_event
from utils.timezone import get_operational_date, previous_operational_date, utc_now, as_naive_utc

SYSTEM_USER = SYSTEM_PRINCIPAL.user_id

NO_SHOW_CANDIDATE_STATES = (
    ReservationStatus.RESERVED.value,
    ReservationStatus.CONFIRMED.value,
)

# Arrivals that count for the daily occupancy summary
ARRIVED_STATES = (
    ReservationStatus.CHECKED_IN.value,
    ReservationStatus.CHECKED_OUT.value,
    ReservationStatus.NO_SHOW.value,
)


class ReconciliationService:

    @staticmethod
    def _claim_day(db: Session, operating_day: date, force: bool) -> Optional[ReconciliationRun]:
        """Marks the day as running. None when it is done already or another worker holds it."""
        run = (
            db.query(ReconciliationRun)
            .filter(ReconciliationRun.operating_day == operating_day)
            .with_for_update()
            .first()
        )
        now = utc_now()
        if run is not None:
            if run.status == RunStatus.COMPLETED.value and not force:
                db.rollback()
                return None
            if run.status == RunStatus.RUNNING.value and run.started_at is not None:
                age = now - as_naive_utc(run.started_at)
                if age < timedelta(minutes=RECONCILIATION_STALE_MINUTES):
                    db.rollback()
                    return None
            run.status = RunStatus.RUNNING.value
            run.started_at = now
            run.finished_at = None
            run.summary = None
        else:
            run = ReconciliationRun(operating_day=operating_day, status=RunStatus.RUNNING.value, started_at=now)
            db.add(run)

        try:
            db.commit()
        except IntegrityError:
            # another worker inserted the row first
            db.rollback()
            return None
        return run

    @staticmethod
    def _ids(db: Session, arrival_date: date, states, on_or_before: bool = False) -> List[int]:
        if on_or_before:
            arrival_filter = Reservation.arrival_date <= arrival_date
        else:
            arrival_filter = Reservation.arrival_date == arrival_date
        rows = (
            db.query(Reservation.id)
            .filter(arrival_filter, Reservation.status.in_(states))
            .order_by(Reservation.id)
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def auto_cancel_unpaid(db: Session, operating_day: date) -> Dict[str, int]:
        """Unpaid arrivals of the day, plus earlier ones booked after their day's run had completed."""
        cancelled = errors = 0
        for reservation_id in ReconciliationService._ids(db, operating_day, UNPAID_STATES, on_or_before=True):
            try:
                reservation = (
                    db.query(Reservation).filter(Reservation.id == reservation_id).with_for_update().first()
                )
                if reservation and ReservationService.auto_cancel(db, reservation, AUTO_CANCEL_REASON, SYSTEM_USER):
                    db.commit()
                    cancelled += 1
                    log_event("reconciliation", SYSTEM_USER, "Auto-cancel", f"id={reservation_id}")
                else:
                    db.rollback()
            except SQLAlchemyError as e:
                db.rollback()
                errors += 1
                log_event("reconciliation", SYSTEM_USER, "Auto-cancel failed", f"id={reservation_id} error={e}", level=logging.ERROR)
        return {"cancelled": cancelled, "errors": errors}

    @staticmethod
    def _no_show_one(db: Session, reservation_id: int) -> Optional[bool]:
        """True if billed now, False if it was already billed, None if nothing changed."""
        reservation = db.query(Reservation).filter(Reservation.id == reservation_id).with_for_update().first()
        if reservation is None or reservation.status not in NO_SHOW_CANDIDATE_STATES:
            db.rollback()
            return None
        billing = ReservationService.mark_no_show(db, reservation, SYSTEM_USER)
        db.commit()
        return billing is not None

    @staticmethod
    def mark_no_shows(db: Session, arrival_date: date) -> Dict[str, int]:
        no_shows = billed = errors = 0
        for reservation_id in ReconciliationService._ids(db, arrival_date, NO_SHOW_CANDIDATE_STATES):
            try:
                try:
                    outcome = ReconciliationService._no_show_one(db, reservation_id)
                except IntegrityError:
                    # billed concurrently: redo the status change, the existing record is kept
                    db.rollback()
                    outcome = ReconciliationService._no_show_one(db, reservation_id)
                if outcome is not None:
                    no_shows += 1
                    billed += 1 if outcome else 0
            except SQLAlchemyError as e:
                db.rollback()
                errors += 1
                log_event("reconciliation", SYSTEM_USER, "No-show failed", f"id={reservation_id} error={e}", level=logging.ERROR)
        return {"no_shows": no_shows, "billed": billed, "errors": errors}

    @staticmethod
    def arrivals_summary(db: Session, arrival_date: date) -> Dict[str, Any]:
        count, guests, revenue = (
            db.query(
                func.count(Reservation.id),
                func.coalesce(func.sum(Reservation.guests), 0),
                func.coalesce(func.sum(Reservation.total_amount), 0),
            )
            .filter(Reservation.arrival_date == arrival_date, Reservation.status.in_(ARRIVED_STATES))
            .one()
        )
        return {
            "date": arrival_date.isoformat(),
            "reservations": int(count or 0),
            "guests": int(guests or 0),
            "revenue": str(Decimal(str(revenue or 0)).quantize(Decimal("0.01"))),
        }

    @staticmethod
    def run(db: Session, operating_day: Optional[date] = None, force: bool = False) -> Dict[str, Any]:
        """
        Runs the three reconciliation steps for operating_day (default: today, hotel time).
        Returns the summary; status "skipped" when the day is done or being processed elsewhere.
        """
        operating_day = operating_day or get_operational_date()
        run = ReconciliationService._claim_day(db, operating_day, force)
        if run is None:
            log_event("reconciliation", SYSTEM_USER, "Run skipped", f"day={operating_day}")
            return {"operating_day": operating_day.isoformat(), "status": "skipped"}

        log_event("reconciliation", SYSTEM_USER, "Run started", f"day={operating_day} force={force}")
        yesterday = previous_operational_date(operating_day)
        try:
            cancel_result = ReconciliationService.auto_cancel_unpaid(db, operating_day)
            no_show_result = ReconciliationService.mark_no_shows(db, yesterday)
            report = ReconciliationService.arrivals_summary(db, yesterday)
        except SQLAlchemyError as e:
            db.rollback()
            run.status = RunStatus.FAILED.value
            run.finished_at = utc_now()
            run.summary = {"error": str(e)[:200]}
            db.commit()
            log_event("reconciliation", SYSTEM_USER, "Run failed", f"day={operating_day} error={e}", level=logging.ERROR)
            raise

        summary = {
            "operating_day": operating_day.isoformat(),
            "status": RunStatus.COMPLETED.value,
            "auto_cancelled": cancel_result["cancelled"],
            "no_shows": no_show_result["no_shows"],
            "no_show_billed": no_show_result["billed"],
            "errors": cancel_result["errors"] + no_show_result["errors"],
            "report": report,
        }
        run.status = RunStatus.COMPLETED.value
        run.finished_at = utc_now()
        run.summary = summary
        db.commit()

        log_event(
            "reconciliation",
            SYSTEM_USER,
            "Run completed",
            f"day={operating_day} cancelled={summary['auto_cancelled']} no_shows={summary['no_shows']} "
            f"arrivals={report['reservations']} guests={report['guests']} revenue={report['revenue']}",
        )
        return summary

    @staticmethod
    def last_run(db: Session) -> Optional[ReconciliationRun]:
        return db.query(ReconciliationRun).order_by(ReconciliationRun.operating_day.desc()).first()
