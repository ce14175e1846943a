"""Entrance fee (simpanan pokok) deduction."""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from koperasi.models.member import ApplicationStatus, InstallmentPlan, Member, MemberApplication
from koperasi.services.payroll.context import PayrollContext
from koperasi.services.payroll.ledger import upsert_ledger_row
from koperasi.services.payroll.results import ProcessorDetail, ProcessorResult, TransactionType
from koperasi.utils.money import ZERO, quantize_money, to_decimal

logger = logging.getLogger(__name__)

ENTITY_TYPE = "MemberApplication"


def calculate_membership_deduction(application: MemberApplication) -> Decimal:
    """
    Amount to deduct this period for an entrance fee.

    Full plan pays the whole remaining amount. The two-installment plan pays
    half the fee first, then whatever remains.
    """
    plan = application.installment_plan
    if plan == InstallmentPlan.FULL_PAYMENT:
        return to_decimal(application.remaining_amount)

    if plan == InstallmentPlan.TWO_INSTALLMENTS:
        if to_decimal(application.paid_amount) == 0:
            return quantize_money(to_decimal(application.entrance_fee) / 2)
        return to_decimal(application.remaining_amount)

    return ZERO


def membership_fee_eligibility(context: PayrollContext) -> list:
    """Cutoff-window rule: approved on or before the cutoff end, not yet paid off."""
    return [
        MemberApplication.status == ApplicationStatus.APPROVED,
        MemberApplication.is_paid_off.is_(False),
        MemberApplication.approved_at <= context.cutoff_end,
    ]


def _settle_application(db: Session, application: MemberApplication, context: PayrollContext) -> Optional[ProcessorDetail]:
    account = application.member.savings_account
    deduction = calculate_membership_deduction(application)
    if deduction <= 0:
        return None

    installment_number = 2 if to_decimal(application.paid_amount) > 0 else 1

    row = upsert_ledger_row(db, account.id, context)
    row.registration_fee = to_decimal(row.registration_fee) + deduction

    new_paid = to_decimal(application.paid_amount) + deduction
    new_remaining = to_decimal(application.remaining_amount) - deduction
    application.paid_amount = new_paid
    application.remaining_amount = new_remaining if new_remaining > 0 else ZERO
    application.is_paid_off = new_remaining <= 0

    account.principal_balance = to_decimal(account.principal_balance) + deduction
    db.flush()

    return ProcessorDetail(
        member_id=str(application.member_id),
        member_name=application.member.name,
        type=TransactionType.REGISTRATION_FEE,
        amount=deduction,
        description=f"Cicilan ke-{installment_number} simpanan pokok",
    )


def process_membership_fees(db: Session, context: PayrollContext) -> ProcessorResult:
    """Deduct pending entrance fees for applications approved before the cutoff."""
    result = ProcessorResult()
    logger.info("Processing membership fees (simpanan pokok)...")

    pending = db.query(MemberApplication).options(
        joinedload(MemberApplication.member).joinedload(Member.savings_account)
    ).filter(
        *membership_fee_eligibility(context)
    ).order_by(MemberApplication.approved_at).all()

    logger.info("Found %d pending membership fees", len(pending))

    for application in pending:
        if application.member.savings_account is None:
            result.fail(
                ENTITY_TYPE,
                f"Member {application.member.name} has no savings account",
                entity_id=application.id,
                member_id=application.member_id,
            )
            continue

        try:
            with db.begin_nested():
                detail = _settle_application(db, application, context)
        except Exception as e:
            logger.warning("Membership fee failed for application %s: %s", application.id, e)
            result.fail(ENTITY_TYPE, str(e), entity_id=application.id, member_id=application.member_id)
            continue

        if detail:
            result.add(detail)
            logger.debug("Processed membership fee for %s: %s", detail.member_name, detail.amount)

    logger.info(
        "Membership fee processing complete. Processed: %d, Total: %s",
        result.processed_count, result.total_amount
    )
    return result
