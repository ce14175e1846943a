from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from koperasi.models.savings import SavingsTransaction
from koperasi.services.payroll.context import PayrollContext
from koperasi.utils.money import ZERO


def get_ledger_row(db: Session, savings_account_id: UUID, payroll_period_id: UUID) -> Optional[SavingsTransaction]:
    return db.query(SavingsTransaction).filter(
        SavingsTransaction.savings_account_id == savings_account_id,
        SavingsTransaction.payroll_period_id == payroll_period_id
    ).first()


def upsert_ledger_row(db: Session, savings_account_id: UUID, context: PayrollContext) -> SavingsTransaction:
    """
    Return the account's ledger row for the context period, creating it if needed.

    Keyed on (savings_account_id, payroll_period_id), which is unique, so
    repeated calls within or across runs touch the same row.
    """
    row = get_ledger_row(db, savings_account_id, context.payroll_period_id)
    if row is None:
        row = SavingsTransaction(
            savings_account_id=savings_account_id,
            payroll_period_id=context.payroll_period_id,
            interest_rate=context.settings.deposit_interest_rate,
            registration_fee=ZERO,
            mandatory_fee=ZERO,
            deposit_installment=ZERO,
            interest=ZERO,
            cumulative_interest=ZERO,
            withdrawal=ZERO,
            profit_share=ZERO,
        )
        db.add(row)
    row.note = context.period_note()
    db.flush()
    return row
