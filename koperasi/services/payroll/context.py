"""Settlement context: settings snapshot, cutoff window and payroll period."""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from koperasi.models.payroll import PayrollPeriod
from koperasi.services.payroll.errors import PayrollAlreadyProcessedError, PayrollReprocessBlockedError
from koperasi.services.settings import PayrollSettings, get_payroll_settings
from koperasi.utils.dates import add_months, clamp_day, start_of_day

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


@dataclass(frozen=True)
class PayrollContext:
    """Everything a processor needs to know about the period being settled."""
    settings: PayrollSettings
    payroll_period_id: UUID
    period_name: str
    cutoff_start: datetime
    cutoff_end: datetime
    process_date: datetime
    reprocess: bool = False

    def period_note(self) -> str:
        return (
            f"Setoran koperasi dari potongan gaji periode "
            f"{format_long_date(self.cutoff_start)} s/d {format_long_date(self.cutoff_end)}"
        )


def format_long_date(value: date) -> str:
    return f"{value.day:02d} {MONTH_NAMES[value.month - 1]} {value.year}"


def period_display_name(month: int, year: int) -> str:
    return f"Periode {MONTH_NAMES[month - 1]} {year}"


def validate_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}. Month must be between 1 and 12")
    if year < 1:
        raise ValueError(f"Invalid year: {year}")


def calculate_process_date(month: int, year: int, settings: PayrollSettings) -> datetime:
    """Payroll day of the target month (clamped to the month's last day)."""
    return start_of_day(clamp_day(year, month, settings.payroll_day))


def calculate_cutoff_window(month: int, year: int, settings: PayrollSettings) -> Tuple[datetime, datetime]:
    """
    Cutoff window for a payroll month.

    Ends at the start of the cutoff day of the target month and starts the day
    after the previous month's cutoff day. With cutoff 15 and month 2/2025 the
    window is 16 Jan 2025 .. 15 Feb 2025.
    """
    cutoff_end = clamp_day(year, month, settings.cutoff_day)
    previous_month = add_months(date(year, month, 1), -1, day=1)
    previous_end = clamp_day(previous_month.year, previous_month.month, settings.cutoff_day)
    cutoff_start = previous_end + timedelta(days=1)
    return start_of_day(cutoff_start), start_of_day(cutoff_end)


def get_or_create_period(db: Session, month: int, year: int) -> PayrollPeriod:
    """Find the period for month/year, creating (and committing) it on first use."""
    period = db.query(PayrollPeriod).filter(
        PayrollPeriod.month == month,
        PayrollPeriod.year == year
    ).first()
    if period:
        return period

    period = PayrollPeriod(
        month=month,
        year=year,
        name=period_display_name(month, year),
        is_processed=False,
        total_amount=Decimal("0.00"),
    )
    db.add(period)
    try:
        db.commit()
    except IntegrityError:
        # Another trigger created the same month/year first
        db.rollback()
        logger.warning("Payroll period %s-%s was created concurrently", month, year)
        return db.query(PayrollPeriod).filter(
            PayrollPeriod.month == month,
            PayrollPeriod.year == year
        ).one()
    db.refresh(period)
    return period


def get_later_processed_period(db: Session, month: int, year: int) -> Optional[PayrollPeriod]:
    """Earliest settled period after month/year, if any."""
    return db.query(PayrollPeriod).filter(
        PayrollPeriod.is_processed.is_(True),
        or_(
            PayrollPeriod.year > year,
            and_(PayrollPeriod.year == year, PayrollPeriod.month > month),
        )
    ).order_by(PayrollPeriod.year, PayrollPeriod.month).first()


def build_payroll_context(
    db: Session,
    month: int,
    year: int,
    force: bool = False,
    settings: Optional[PayrollSettings] = None
) -> PayrollContext:
    """
    Resolve settings, cutoff window and the payroll period for a settlement run.

    Raises PayrollAlreadyProcessedError when the period is settled and force
    is not set, and PayrollReprocessBlockedError when force is set but a
    later period is already settled. With force, the period's processed
    state is reset in the current (uncommitted) transaction.
    """
    validate_period(month, year)
    settings = settings or get_payroll_settings(db)
    cutoff_start, cutoff_end = calculate_cutoff_window(month, year, settings)
    process_date = calculate_process_date(month, year, settings)

    period = get_or_create_period(db, month, year)
    reprocess = False

    if period.is_processed:
        if not force:
            logger.warning("Payroll period %s-%s already processed. Stop.", month, year)
            raise PayrollAlreadyProcessedError(month, year)
        # Installment counters only unwind cleanly from the latest settled period
        later = get_later_processed_period(db, month, year)
        if later is not None:
            logger.warning(
                "Cannot force payroll period %s-%s: %s-%s is already processed",
                month, year, later.month, later.year
            )
            raise PayrollReprocessBlockedError(month, year, later.month, later.year)
        logger.info("Force reprocessing payroll period %s-%s", month, year)
        reprocess = True
        period.is_processed = False
        period.processed_at = None
        period.total_amount = Decimal("0.00")
        db.flush()

    return PayrollContext(
        settings=settings,
        payroll_period_id=period.id,
        period_name=period.name,
        cutoff_start=cutoff_start,
        cutoff_end=cutoff_end,
        process_date=process_date,
        reprocess=reprocess,
    )
