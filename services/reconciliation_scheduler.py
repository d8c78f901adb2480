"""Reconciliation cron scheduler.

Runs the daily reconciliation at the configured cutoff (hotel time).

Guardrails:
- SCHEDULER_ENABLED env var (default: true)
- coalesce=True, max_instances=1, misfire_grace_time=3600
- in-process lock: a trigger is skipped while a run is still active
- ReconciliationRun row per operating day prevents duplicate runs across workers
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from config import HOTEL_TIMEZONE, RECONCILIATION_HOUR, RECONCILIATION_MINUTE, SCHEDULER_ENABLED
from database.connection import SessionLocal
from services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)

JOB_ID = "daily_reconciliation"

_scheduler: Optional[BackgroundScheduler] = None
_run_lock = threading.Lock()
_last_run_at: Optional[str] = None
_last_result: Optional[dict] = None


def run_reconciliation(operating_day=None, force: bool = False, db=None) -> dict:
    """Single entry point for the cron job and the manual trigger (which passes its request session)."""
    global _last_run_at, _last_result

    if not _run_lock.acquire(blocking=False):
        logger.warning("[cron] Reconciliation already running in this process, trigger skipped")
        return {"status": "skipped", "reason": "already_running"}

    try:
        _last_run_at = datetime.now(timezone.utc).isoformat()
        if db is not None:
            result = ReconciliationService.run(db, operating_day, force=force)
        else:
            session = SessionLocal()
            try:
                result = ReconciliationService.run(session, operating_day, force=force)
            finally:
                session.close()
        _last_result = result
        logger.info("[cron] Reconciliation %s: status=%s", result.get("operating_day"), result.get("status"))
        return result
    except Exception as e:
        _last_result = {"status": "failed", "error": str(e)[:200]}
        logger.exception("[cron] Reconciliation failed")
        raise
    finally:
        _run_lock.release()


def _reconciliation_job() -> None:
    # failures propagate to APScheduler, which logs them; the next trigger retries the day
    run_reconciliation()


def start_scheduler() -> None:
    """Start the APScheduler if enabled."""
    global _scheduler

    if not SCHEDULER_ENABLED:
        logger.info("[cron] Scheduler disabled (SCHEDULER_ENABLED != true)")
        return
    if _scheduler and _scheduler.running:
        return

    _scheduler = BackgroundScheduler(timezone=HOTEL_TIMEZONE)
    _scheduler.add_job(
        _reconciliation_job,
        "cron",
        hour=RECONCILIATION_HOUR,
        minute=RECONCILIATION_MINUTE,
        id=JOB_ID,
        name="Daily Reservation Reconciliation",
        coalesce=True,
        max_instances=1,
        misfire_grace_time=3600,
        replace_existing=True,
    )
    _scheduler.start()
    logger.info(
        "[cron] Scheduler started (%s, daily reconciliation at %02d:%02d)",
        HOTEL_TIMEZONE, RECONCILIATION_HOUR, RECONCILIATION_MINUTE,
    )


def stop_scheduler() -> None:
    """Stop the scheduler gracefully."""
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("[cron] Scheduler stopped")
    _scheduler = None


def get_status() -> dict:
    """Scheduler status for the ops endpoint."""
    running = _scheduler.running if _scheduler else False
    next_run = None
    if _scheduler and _scheduler.running:
        job = _scheduler.get_job(JOB_ID)
        if job and job.next_run_time:
            next_run = job.next_run_time.isoformat()

    return {
        "scheduler_enabled": SCHEDULER_ENABLED,
        "scheduler_running": running,
        "run_in_progress": _run_lock.locked(),
        "next_run": next_run,
        "last_run_at": _last_run_at,
        "last_result": _last_result,
        "schedule": f"{RECONCILIATION_HOUR:02d}:{RECONCILIATION_MINUTE:02d} {HOTEL_TIMEZONE}",
    }
