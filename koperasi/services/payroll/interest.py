"""Monthly interest on savings (bunga simpanan).

Runs after every other processor, so the balance base already includes this
period's fees and deposit installments.
"""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session, joinedload

from koperasi.models.member import Member
from koperasi.models.savings import SavingsAccount, SavingsTransaction
from koperasi.services.payroll.context import PayrollContext
from koperasi.services.payroll.ledger import get_ledger_row
from koperasi.services.payroll.results import ProcessorDetail, ProcessorResult, TransactionType
from koperasi.utils.money import ZERO, quantize_money, to_decimal

logger = logging.getLogger(__name__)

ENTITY_TYPE = "SavingsAccount"


def interest_base(account: SavingsAccount) -> Decimal:
    """Principal + mandatory + voluntary; accrued interest does not compound."""
    return (
        to_decimal(account.principal_balance)
        + to_decimal(account.mandatory_balance)
        + to_decimal(account.voluntary_balance)
    )


def calculate_monthly_interest(balance: Decimal, annual_rate: Decimal) -> Decimal:
    return quantize_money(balance * to_decimal(annual_rate) / Decimal("100") / Decimal("12"))


def _accrue(db: Session, account: SavingsAccount, interest: Decimal, context: PayrollContext) -> None:
    row = get_ledger_row(db, account.id, context.payroll_period_id)
    if row is not None:
        row.interest = interest
        row.cumulative_interest = to_decimal(row.cumulative_interest) + interest
        row.note = context.period_note()
    else:
        db.add(SavingsTransaction(
            savings_account_id=account.id,
            payroll_period_id=context.payroll_period_id,
            interest_rate=context.settings.deposit_interest_rate,
            registration_fee=ZERO,
            mandatory_fee=ZERO,
            deposit_installment=ZERO,
            interest=interest,
            cumulative_interest=interest,
            withdrawal=ZERO,
            profit_share=ZERO,
            note=context.period_note(),
        ))

    account.interest_balance = to_decimal(account.interest_balance) + interest
    db.flush()


def process_interest(db: Session, context: PayrollContext) -> ProcessorResult:
    """Accrue one month of interest on every verified member's savings."""
    result = ProcessorResult()
    logger.info("Calculating interest (bunga simpanan)...")

    accounts = db.query(SavingsAccount).join(
        Member, SavingsAccount.member_id == Member.id
    ).options(
        joinedload(SavingsAccount.member)
    ).filter(
        Member.member_verified.is_(True)
    ).order_by(Member.name).all()

    logger.info("Calculating interest for %d accounts", len(accounts))

    annual_rate = context.settings.deposit_interest_rate

    for account in accounts:
        try:
            balance = interest_base(account)
            if balance <= 0:
                continue
            interest = calculate_monthly_interest(balance, annual_rate)
            with db.begin_nested():
                _accrue(db, account, interest, context)
        except Exception as e:
            logger.warning("Interest accrual failed for account %s: %s", account.id, e)
            result.fail(ENTITY_TYPE, str(e), entity_id=account.id, member_id=account.member_id)
            continue

        result.add(ProcessorDetail(
            member_id=str(account.member_id),
            member_name=account.member.name,
            type=TransactionType.INTEREST,
            amount=interest,
            description=f"Bunga {annual_rate}% p.a. dari saldo {balance}",
        ))
        logger.debug("Interest for %s: %s (base: %s)", account.member.name, interest, balance)

    logger.info(
        "Interest calculation complete. Processed: %d, Total: %s",
        result.processed_count, result.total_amount
    )
    return result
