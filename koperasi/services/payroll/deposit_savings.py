"""Voluntary deposit installments (tabungan deposito)."""
import logging
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from koperasi.models.deposit import DepositApplication, DepositHistory, DepositStatus
from koperasi.models.member import Member
from koperasi.services.payroll.context import PayrollContext
from koperasi.services.payroll.ledger import upsert_ledger_row
from koperasi.services.payroll.results import ProcessorDetail, ProcessorResult, TransactionType
from koperasi.utils.money import to_decimal

logger = logging.getLogger(__name__)

ENTITY_TYPE = "DepositApplication"


def deposit_eligibility(context: PayrollContext) -> list:
    """Cutoff-window rule: approved or active, approved on or before the cutoff end."""
    return [
        DepositApplication.status.in_([DepositStatus.APPROVED, DepositStatus.ACTIVE]),
        DepositApplication.approved_at <= context.cutoff_end,
    ]


def _collect_installment(db: Session, deposit: DepositApplication, context: PayrollContext) -> ProcessorDetail:
    account = deposit.member.savings_account
    deduction = to_decimal(deposit.amount_value)

    row = upsert_ledger_row(db, account.id, context)
    row.deposit_installment = to_decimal(row.deposit_installment) + deduction

    new_count = deposit.installment_count + 1
    is_completed = new_count >= deposit.tenor_months

    new_status = deposit.status
    if deposit.status == DepositStatus.APPROVED:
        new_status = DepositStatus.ACTIVE
        deposit.activated_at = context.process_date
    if is_completed:
        new_status = DepositStatus.COMPLETED
        deposit.completed_at = context.process_date

    deposit.status = new_status
    deposit.collected_amount = to_decimal(deposit.collected_amount) + deduction
    deposit.installment_count = new_count

    account.voluntary_balance = to_decimal(account.voluntary_balance) + deduction

    db.add(DepositHistory(
        deposit_application_id=deposit.id,
        payroll_period_id=context.payroll_period_id,
        status=new_status,
        amount_value=deposit.amount_value,
        tenor_months=deposit.tenor_months,
        action="COMPLETED" if is_completed else f"INSTALLMENT_{new_count}",
        action_at=context.process_date,
        notes=f"Cicilan ke-{new_count} dari {deposit.tenor_months} bulan",
    ))
    db.flush()

    return ProcessorDetail(
        member_id=str(deposit.member_id),
        member_name=deposit.member.name,
        type=TransactionType.DEPOSIT_INSTALLMENT,
        amount=deduction,
        description=f"Tabungan deposito cicilan ke-{new_count}/{deposit.tenor_months}",
    )


def process_deposit_savings(db: Session, context: PayrollContext) -> ProcessorResult:
    """Collect one installment from each running deposit until its tenor is reached."""
    result = ProcessorResult()
    logger.info("Processing deposit savings (tabungan deposito)...")

    deposits = db.query(DepositApplication).options(
        joinedload(DepositApplication.member).joinedload(Member.savings_account)
    ).filter(
        *deposit_eligibility(context)
    ).order_by(DepositApplication.approved_at).all()

    logger.info("Found %d active deposits", len(deposits))

    for deposit in deposits:
        if deposit.member.savings_account is None:
            result.fail(
                ENTITY_TYPE,
                f"Member {deposit.member.name} has no savings account",
                entity_id=deposit.id,
                member_id=deposit.member_id,
            )
            continue

        if deposit.installment_count >= deposit.tenor_months:
            logger.debug("Deposit %s already completed", deposit.deposit_number)
            continue

        detail: Optional[ProcessorDetail] = None
        try:
            with db.begin_nested():
                detail = _collect_installment(db, deposit, context)
        except Exception as e:
            logger.warning("Deposit installment failed for %s: %s", deposit.deposit_number, e)
            result.fail(ENTITY_TYPE, str(e), entity_id=deposit.id, member_id=deposit.member_id)
            continue

        result.add(detail)
        logger.debug(
            "Processed deposit for %s: %s (%d/%d)",
            detail.member_name, detail.amount, deposit.installment_count, deposit.tenor_months
        )

    logger.info(
        "Deposit savings processing complete. Processed: %d, Total: %s",
        result.processed_count, result.total_amount
    )
    return result
