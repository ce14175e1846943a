"""Undo a settled period before it is forcibly reprocessed.

Runs inside the settlement transaction, so a failed rerun leaves the
previous settlement untouched.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from koperasi.models.deposit import DepositApplication, DepositHistory, DepositStatus
from koperasi.models.loan import LoanApplication, LoanHistory, LoanInstallment, LoanStatus
from koperasi.models.member import MemberApplication
from koperasi.models.savings import SavingsAccount, SavingsTransaction
from koperasi.services.payroll.context import PayrollContext
from koperasi.services.payroll.loan_installment import COMPLETED_ACTION
from koperasi.utils.money import ZERO, to_decimal

logger = logging.getLogger(__name__)


def _reverse_ledger_rows(db: Session, context: PayrollContext) -> int:
    rows = db.query(SavingsTransaction).filter(
        SavingsTransaction.payroll_period_id == context.payroll_period_id
    ).all()

    for row in rows:
        account = db.query(SavingsAccount).filter(SavingsAccount.id == row.savings_account_id).one()
        registration_fee = to_decimal(row.registration_fee)
        interest = to_decimal(row.interest)

        account.principal_balance = to_decimal(account.principal_balance) - registration_fee
        account.mandatory_balance = to_decimal(account.mandatory_balance) - to_decimal(row.mandatory_fee)
        account.voluntary_balance = to_decimal(account.voluntary_balance) - to_decimal(row.deposit_installment)
        account.interest_balance = to_decimal(account.interest_balance) - interest

        if registration_fee > 0:
            application = db.query(MemberApplication).filter(
                MemberApplication.member_id == account.member_id
            ).first()
            if application:
                application.paid_amount = to_decimal(application.paid_amount) - registration_fee
                application.remaining_amount = to_decimal(application.remaining_amount) + registration_fee
                application.is_paid_off = application.remaining_amount <= 0

        row.registration_fee = ZERO
        row.mandatory_fee = ZERO
        row.deposit_installment = ZERO
        row.cumulative_interest = to_decimal(row.cumulative_interest) - interest
        row.interest = ZERO

    return len(rows)


def _reverse_deposit_installments(db: Session, context: PayrollContext, now: datetime) -> int:
    entries = db.query(DepositHistory).filter(
        DepositHistory.payroll_period_id == context.payroll_period_id,
        DepositHistory.reversed_at.is_(None)
    ).all()

    for entry in entries:
        deposit = db.query(DepositApplication).filter(
            DepositApplication.id == entry.deposit_application_id
        ).one()
        deposit.installment_count = max(deposit.installment_count - 1, 0)
        deposit.collected_amount = to_decimal(deposit.collected_amount) - to_decimal(entry.amount_value)
        deposit.completed_at = None
        if deposit.installment_count == 0:
            deposit.status = DepositStatus.APPROVED
            deposit.activated_at = None
        else:
            deposit.status = DepositStatus.ACTIVE
        entry.reversed_at = now

    return len(entries)


def _reverse_loan_installments(db: Session, context: PayrollContext, now: datetime) -> int:
    installments = db.query(LoanInstallment).filter(
        LoanInstallment.payroll_period_id == context.payroll_period_id,
        LoanInstallment.is_paid.is_(True)
    ).all()

    for installment in installments:
        installment.is_paid = False
        installment.paid_amount = None
        installment.paid_at = None
        installment.payroll_period_id = None
        installment.notes = None

    completions = db.query(LoanHistory).filter(
        LoanHistory.payroll_period_id == context.payroll_period_id,
        LoanHistory.action == COMPLETED_ACTION,
        LoanHistory.reversed_at.is_(None)
    ).all()

    for entry in completions:
        loan = db.query(LoanApplication).filter(LoanApplication.id == entry.loan_application_id).one()
        loan.status = LoanStatus.DISBURSED
        loan.completed_at = None
        entry.reversed_at = now

    return len(installments)


def reverse_period(db: Session, context: PayrollContext) -> dict:
    """Restore balances and obligations to their state before the period was settled."""
    now = datetime.utcnow()
    counts = {
        "ledger_rows": _reverse_ledger_rows(db, context),
        "deposit_installments": _reverse_deposit_installments(db, context, now),
        "loan_installments": _reverse_loan_installments(db, context, now),
    }
    db.flush()
    logger.info("Reversed previous settlement of %s: %s", context.period_name, counts)
    return counts
