"""Monthly mandatory savings (iuran wajib)."""
import logging

from sqlalchemy.orm import Session, joinedload

from koperasi.models.member import Member
from koperasi.models.savings import SavingsAccount
from koperasi.services.payroll.context import PayrollContext
from koperasi.services.payroll.ledger import upsert_ledger_row
from koperasi.services.payroll.results import ProcessorDetail, ProcessorResult, TransactionType
from koperasi.utils.money import to_decimal

logger = logging.getLogger(__name__)

ENTITY_TYPE = "Member"


def mandatory_savings_eligibility() -> list:
    """Every verified member holding a savings account; no date window."""
    return [Member.member_verified.is_(True)]


def get_active_members(db: Session) -> list:
    return db.query(Member).join(
        SavingsAccount, SavingsAccount.member_id == Member.id
    ).options(
        joinedload(Member.savings_account)
    ).filter(
        *mandatory_savings_eligibility()
    ).order_by(Member.name).all()


def process_mandatory_savings(db: Session, context: PayrollContext) -> ProcessorResult:
    """Charge the monthly fee once per member per period."""
    result = ProcessorResult()
    logger.info("Processing mandatory savings (iuran wajib)...")

    members = get_active_members(db)
    logger.info("Found %d active members", len(members))

    monthly_fee = context.settings.monthly_membership_fee

    for member in members:
        account = member.savings_account
        try:
            with db.begin_nested():
                row = upsert_ledger_row(db, account.id, context)
                # Overwrite: the balance only moves by what the field changes
                previous_fee = to_decimal(row.mandatory_fee)
                row.mandatory_fee = monthly_fee
                account.mandatory_balance = to_decimal(account.mandatory_balance) + (monthly_fee - previous_fee)
                db.flush()
        except Exception as e:
            logger.warning("Mandatory savings failed for member %s: %s", member.id, e)
            result.fail(ENTITY_TYPE, str(e), entity_id=member.id, member_id=member.id)
            continue

        result.add(ProcessorDetail(
            member_id=str(member.id),
            member_name=member.name,
            type=TransactionType.MANDATORY_FEE,
            amount=monthly_fee,
            description="Iuran wajib bulanan",
        ))

    logger.info(
        "Mandatory savings processing complete. Processed: %d, Total: %s",
        result.processed_count, result.total_amount
    )
    return result
