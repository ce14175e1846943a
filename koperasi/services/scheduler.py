"""Background scheduler for the monthly payroll settlement."""

import logging
from datetime import date
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from koperasi.core.audit import write_audit_log
from koperasi.core.config import settings
from koperasi.db.base import SessionLocal
from koperasi.services.payroll import PayrollAlreadyProcessedError, process_payroll
from koperasi.services.settings import get_payroll_settings
from koperasi.utils.dates import clamp_day

logger = logging.getLogger(__name__)

scheduler: AsyncIOScheduler | None = None

PAYROLL_JOB_ID = "run_scheduled_payroll"


# ---------------------------------------------------------------------------
# Job: settle payroll on the configured payroll day
# ---------------------------------------------------------------------------

def run_scheduled_payroll(
    today: Optional[date] = None,
    session_factory: Callable[[], Session] = SessionLocal
) -> Optional[dict]:
    """Run settlement for the current month if today is the payroll day.

    Returns the summary totals when a settlement ran, otherwise None.
    """
    today = today or date.today()
    db = session_factory()
    try:
        payroll_settings = get_payroll_settings(db)
        # Payroll days past the month's end fall on its last day
        payroll_day = clamp_day(today.year, today.month, payroll_settings.payroll_day).day
        if today.day != payroll_day:
            logger.debug("Today (%s) is not payroll day (%s), skipping", today.day, payroll_day)
            return None

        logger.info("Payroll day reached, processing %s-%s", today.month, today.year)
        summary = process_payroll(db, today.month, today.year)

        write_audit_log(
            actor="scheduler",
            action="payroll_processed",
            details=f"period={summary.period_name}, grand_total={summary.grand_total}",
        )
        logger.info("Scheduled payroll finished: %s, grand total %s", summary.period_name, summary.grand_total)
        return {"period_id": summary.period_id, "grand_total": summary.grand_total}
    except PayrollAlreadyProcessedError as e:
        logger.warning("Scheduled payroll skipped: %s", e)
        return None
    except Exception:
        db.rollback()
        logger.exception("Error in scheduled payroll")
        return None
    finally:
        db.close()


# ---------------------------------------------------------------------------
# Scheduler lifecycle helpers
# ---------------------------------------------------------------------------

def start_scheduler() -> None:
    """Create and start the background scheduler."""
    global scheduler
    hour = settings.PAYROLL_CRON_HOUR
    minute = settings.PAYROLL_CRON_MINUTE

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_scheduled_payroll,
        trigger=CronTrigger(hour=hour, minute=minute),
        id=PAYROLL_JOB_ID,
        name="Monthly payroll settlement",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Payroll scheduler started, daily check at %02d:%02d", hour, minute)


def stop_scheduler() -> None:
    """Shut down the background scheduler gracefully."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Payroll scheduler stopped")
        scheduler = None


def get_scheduler_status() -> dict:
    """Return current scheduler state for the health endpoint."""
    if not scheduler or not scheduler.running:
        return {"running": False, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        })

    return {"running": True, "jobs": jobs}
