"""
Monthly payroll settlement.

One run settles a (month, year) period: entrance fees, mandatory savings,
deposit installments, loan installments and interest are applied in that
order inside a single transaction, then the period is marked processed.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.orm import Session, joinedload

from koperasi.core.config import settings as app_settings
from koperasi.models.deposit import DepositApplication
from koperasi.models.loan import LoanApplication, LoanInstallment
from koperasi.models.member import Member, MemberApplication
from koperasi.models.payroll import PayrollPeriod
from koperasi.models.savings import SavingsAccount, SavingsTransaction
from koperasi.services.payroll.context import (
    PayrollContext, build_payroll_context, calculate_cutoff_window,
    calculate_process_date, period_display_name, validate_period,
)
from koperasi.services.payroll.deposit_savings import deposit_eligibility, process_deposit_savings
from koperasi.services.payroll.errors import PayrollPeriodNotFoundError
from koperasi.services.payroll.interest import calculate_monthly_interest, interest_base, process_interest
from koperasi.services.payroll.loan_installment import installment_due_eligibility, process_loan_installments
from koperasi.services.payroll.mandatory_savings import get_active_members, process_mandatory_savings
from koperasi.services.payroll.membership_fee import (
    calculate_membership_deduction, membership_fee_eligibility, process_membership_fees,
)
from koperasi.services.payroll.results import PayrollSummary, ProcessorResult
from koperasi.services.payroll.reversal import reverse_period
from koperasi.services.settings import get_payroll_settings
from koperasi.utils.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

Processor = Callable[[Session, PayrollContext], ProcessorResult]

# Order matters: interest must see the balances produced by the others
PIPELINE: List[Tuple[str, Processor]] = [
    ("membership", process_membership_fees),
    ("mandatory_savings", process_mandatory_savings),
    ("deposit_savings", process_deposit_savings),
    ("loan_installments", process_loan_installments),
    ("interest", process_interest),
]

# Deductions that make up the period total; interest is credited, not deducted
GRAND_TOTAL_STEPS = ("membership", "mandatory_savings", "deposit_savings", "loan_installments")


def apply_transaction_bounds(db: Session) -> None:
    """Bound statement time and lock waits for the settlement transaction (PostgreSQL only)."""
    if db.get_bind().dialect.name != "postgresql":
        return
    timeout_ms = app_settings.PAYROLL_TRANSACTION_TIMEOUT_SECONDS * 1000
    lock_wait_ms = app_settings.PAYROLL_TRANSACTION_MAX_WAIT_SECONDS * 1000
    db.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))
    db.execute(text(f"SET LOCAL lock_timeout = {int(lock_wait_ms)}"))


def calculate_grand_total(results: dict) -> Decimal:
    return sum((results[name].total_amount for name in GRAND_TOTAL_STEPS), Decimal("0.00"))


def _finalize_period(db: Session, context: PayrollContext, total: Decimal) -> PayrollPeriod:
    period = db.query(PayrollPeriod).filter(PayrollPeriod.id == context.payroll_period_id).one()
    period.is_processed = True
    period.processed_at = datetime.utcnow()
    period.total_amount = total
    db.flush()
    return period


def process_payroll(db: Session, month: int, year: int, force: bool = False) -> PayrollSummary:
    """
    Settle payroll for a month.

    Raises PayrollAlreadyProcessedError when the period is settled and force
    is not set. Any error escaping a processor rolls back the whole run.
    """
    logger.info("Starting payroll processing for %s-%s (force=%s)", month, year, force)

    context = build_payroll_context(db, month, year, force=force)
    logger.info(
        "Cutoff window: %s to %s, process date %s",
        context.cutoff_start.date(), context.cutoff_end.date(), context.process_date.date()
    )

    try:
        apply_transaction_bounds(db)

        if context.reprocess:
            reverse_period(db, context)

        results = {}
        for name, processor in PIPELINE:
            results[name] = processor(db, context)

        grand_total = calculate_grand_total(results)
        period = _finalize_period(db, context, grand_total)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Payroll processing failed for %s-%s, transaction rolled back", month, year)
        raise

    logger.info("Payroll processing completed for %s. Grand total: %s", context.period_name, grand_total)

    return PayrollSummary(
        period_id=str(period.id),
        period_name=period.name,
        processed_at=period.processed_at,
        membership=results["membership"],
        mandatory_savings=results["mandatory_savings"],
        deposit_savings=results["deposit_savings"],
        loan_installments=results["loan_installments"],
        interest=results["interest"],
        grand_total=grand_total,
    )


def _period_to_dict(db: Session, period: PayrollPeriod) -> dict:
    transaction_count = db.query(SavingsTransaction).filter(
        SavingsTransaction.payroll_period_id == period.id
    ).count()
    loan_installment_count = db.query(LoanInstallment).filter(
        LoanInstallment.payroll_period_id == period.id
    ).count()
    return {
        "id": str(period.id),
        "month": period.month,
        "year": period.year,
        "name": period.name,
        "is_processed": period.is_processed,
        "processed_at": period.processed_at.isoformat() if period.processed_at else None,
        "total_amount": to_decimal(period.total_amount),
        "transaction_count": transaction_count,
        "loan_installment_count": loan_installment_count,
    }


def get_payroll_status(db: Session, month: int, year: int) -> Optional[dict]:
    validate_period(month, year)
    period = db.query(PayrollPeriod).filter(
        PayrollPeriod.month == month,
        PayrollPeriod.year == year
    ).first()
    if not period:
        return None
    return _period_to_dict(db, period)


def get_payroll_history(db: Session, limit: int = 12) -> List[dict]:
    periods = db.query(PayrollPeriod).order_by(
        PayrollPeriod.year.desc(),
        PayrollPeriod.month.desc()
    ).limit(limit).all()
    return [_period_to_dict(db, period) for period in periods]


def get_period_transactions(db: Session, period_id: UUID) -> dict:
    """Ledger rows of a period with their members, ordered by member name."""
    period = db.query(PayrollPeriod).filter(PayrollPeriod.id == period_id).first()
    if not period:
        raise PayrollPeriodNotFoundError(f"Payroll period {period_id} not found")

    rows = db.query(SavingsTransaction).join(
        SavingsAccount, SavingsTransaction.savings_account_id == SavingsAccount.id
    ).join(
        Member, SavingsAccount.member_id == Member.id
    ).options(
        joinedload(SavingsTransaction.account).joinedload(SavingsAccount.member)
    ).filter(
        SavingsTransaction.payroll_period_id == period.id
    ).order_by(Member.name).all()

    transactions = []
    for row in rows:
        member = row.account.member
        transactions.append({
            "id": str(row.id),
            "member": {
                "id": str(member.id),
                "name": member.name,
                "employee_number": member.employee_number,
            },
            "registration_fee": to_decimal(row.registration_fee),
            "mandatory_fee": to_decimal(row.mandatory_fee),
            "deposit_installment": to_decimal(row.deposit_installment),
            "interest": to_decimal(row.interest),
            "cumulative_interest": to_decimal(row.cumulative_interest),
            "profit_share": to_decimal(row.profit_share),
            "withdrawal": to_decimal(row.withdrawal),
            "note": row.note,
            "transaction_date": row.transaction_date.isoformat() if row.transaction_date else None,
        })

    return {"period": _period_to_dict(db, period), "transactions": transactions}


def preview_payroll(db: Session, month: int, year: int) -> dict:
    """
    Dry run of a settlement.

    Uses the same eligibility rules as the processors but writes nothing,
    not even the payroll period.
    """
    validate_period(month, year)
    payroll_settings = get_payroll_settings(db)
    cutoff_start, cutoff_end = calculate_cutoff_window(month, year, payroll_settings)
    process_date = calculate_process_date(month, year, payroll_settings)

    # Processors only read these fields, so a transient context is enough
    context = PayrollContext(
        settings=payroll_settings,
        payroll_period_id=None,
        period_name=period_display_name(month, year),
        cutoff_start=cutoff_start,
        cutoff_end=cutoff_end,
        process_date=process_date,
    )

    # Applications without a savings account are rejected by the processor
    applications = db.query(MemberApplication).join(
        SavingsAccount, SavingsAccount.member_id == MemberApplication.member_id
    ).filter(*membership_fee_eligibility(context)).all()
    membership_total = sum((calculate_membership_deduction(a) for a in applications), ZERO)

    members = get_active_members(db)
    mandatory_total = payroll_settings.monthly_membership_fee * len(members)

    deposits = [
        d for d in db.query(DepositApplication).filter(*deposit_eligibility(context)).all()
        if d.installment_count < d.tenor_months
    ]
    deposit_total = sum((to_decimal(d.amount_value) for d in deposits), ZERO)

    installments = db.query(LoanInstallment).join(
        LoanApplication, LoanInstallment.loan_application_id == LoanApplication.id
    ).filter(*installment_due_eligibility(context)).all()
    installment_total = sum((to_decimal(i.amount) for i in installments), ZERO)

    # Estimate on current balances; the real run also counts this period's deductions
    interest_total = ZERO
    for member in members:
        balance = interest_base(member.savings_account)
        if balance > 0:
            interest_total += calculate_monthly_interest(balance, payroll_settings.deposit_interest_rate)

    return {
        "period": context.period_name,
        "cutoff_start": cutoff_start.isoformat(),
        "cutoff_end": cutoff_end.isoformat(),
        "process_date": process_date.isoformat(),
        "preview": {
            "pending_membership_fees": len(applications),
            "active_members_for_mandatory_savings": len(members),
            "active_deposits": len(deposits),
            "due_loan_installments": len(installments),
        },
        "estimated_amounts": {
            "membership": membership_total,
            "mandatory_savings": mandatory_total,
            "deposit_savings": deposit_total,
            "loan_installments": installment_total,
            "interest": interest_total,
            "grand_total": membership_total + mandatory_total + deposit_total + installment_total,
        },
    }
