"""Loan installments due in the payroll month (angsuran pinjaman).

Loan repayments are deducted from salary, so this processor only settles
the installment schedule and never touches savings balances or ledger rows.
"""
import logging

from sqlalchemy.orm import Session, joinedload

from koperasi.models.loan import LoanApplication, LoanHistory, LoanInstallment, LoanStatus
from koperasi.services.payroll.context import PayrollContext
from koperasi.services.payroll.results import ProcessorDetail, ProcessorResult, TransactionType
from koperasi.utils.dates import month_bounds
from koperasi.utils.money import to_decimal

logger = logging.getLogger(__name__)

ENTITY_TYPE = "LoanInstallment"
COMPLETED_ACTION = "INSTALLMENTS_COMPLETED"


def installment_due_eligibility(context: PayrollContext) -> list:
    """Calendar-month rule: unpaid, due within the process date's month, loan disbursed.

    Unlike the savings processors this ignores the cutoff window; installment
    due dates already sit on payroll days.
    """
    month_start, next_month_start = month_bounds(context.process_date.date())
    return [
        LoanInstallment.is_paid.is_(False),
        LoanInstallment.due_date >= month_start,
        LoanInstallment.due_date < next_month_start,
        LoanApplication.status == LoanStatus.DISBURSED,
    ]


def _pay_installment(db: Session, installment: LoanInstallment, context: PayrollContext) -> ProcessorDetail:
    loan = installment.loan_application
    amount = to_decimal(installment.amount)

    installment.is_paid = True
    installment.paid_amount = amount
    installment.paid_at = context.process_date
    installment.payroll_period_id = context.payroll_period_id
    installment.notes = f"Dibayar melalui payroll {context.period_name}"
    db.flush()

    remaining = db.query(LoanInstallment).filter(
        LoanInstallment.loan_application_id == loan.id,
        LoanInstallment.is_paid.is_(False)
    ).count()

    if remaining == 0:
        loan.status = LoanStatus.COMPLETED
        loan.completed_at = context.process_date
        db.add(LoanHistory(
            loan_application_id=loan.id,
            payroll_period_id=context.payroll_period_id,
            status=LoanStatus.COMPLETED,
            action=COMPLETED_ACTION,
            action_at=context.process_date,
            notes=f"Seluruh angsuran lunas via payroll {context.period_name}",
        ))
        db.flush()
        logger.info("Loan %s fully repaid", loan.loan_number)

    return ProcessorDetail(
        member_id=str(loan.member_id),
        member_name=loan.member.name if loan.member else None,
        type=TransactionType.LOAN_INSTALLMENT,
        amount=amount,
        description=f"Angsuran ke-{installment.installment_number}/{loan.loan_tenor} pinjaman {loan.loan_number}",
    )


def process_loan_installments(db: Session, context: PayrollContext) -> ProcessorResult:
    """Mark installments due this month as paid and close fully repaid loans."""
    result = ProcessorResult()
    logger.info("Processing loan installments (angsuran pinjaman)...")

    due_installments = db.query(LoanInstallment).join(
        LoanApplication, LoanInstallment.loan_application_id == LoanApplication.id
    ).options(
        joinedload(LoanInstallment.loan_application).joinedload(LoanApplication.member)
    ).filter(
        *installment_due_eligibility(context)
    ).order_by(
        LoanInstallment.loan_application_id,
        LoanInstallment.installment_number
    ).all()

    logger.info("Found %d installments due", len(due_installments))

    for installment in due_installments:
        try:
            with db.begin_nested():
                detail = _pay_installment(db, installment, context)
        except Exception as e:
            logger.warning("Loan installment %s failed: %s", installment.id, e)
            result.fail(ENTITY_TYPE, str(e), entity_id=installment.id)
            continue

        result.add(detail)

    logger.info(
        "Loan installment processing complete. Processed: %d, Total: %s",
        result.processed_count, result.total_amount
    )
    return result
