"""Loan installment schedule: flat-rate calculation, generation at disbursement, summaries."""
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from koperasi.models.loan import LoanApplication, LoanInstallment, LoanStatus
from koperasi.services.settings import PayrollSettings, get_payroll_settings
from koperasi.utils.dates import add_months, clamp_day
from koperasi.utils.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

WHOLE_UNIT = Decimal("1")


def calculate_loan_details(amount: Decimal, tenor: int, annual_rate: Decimal) -> dict:
    """
    Flat-rate loan calculation.

    Interest accrues on the original amount for the whole tenor:
    total_interest = amount * rate/100 * tenor/12. Installment and total are
    rounded to whole currency units.
    """
    if tenor <= 0:
        raise ValueError("Loan tenor must be at least one month")

    amount = to_decimal(amount)
    rate = to_decimal(annual_rate)
    total_interest = amount * rate / Decimal("100") * Decimal(tenor) / Decimal("12")
    total_repayment = amount + total_interest
    monthly_installment = total_repayment / Decimal(tenor)

    return {
        "interest_rate": rate,
        "monthly_installment": monthly_installment.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP),
        "total_repayment": total_repayment.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP),
    }


def calculate_first_due_date(disbursed_on: date, settings: PayrollSettings) -> date:
    """First payroll date that can carry the installment.

    Loans disbursed after the cutoff day miss this month's payroll.
    """
    due_date = clamp_day(disbursed_on.year, disbursed_on.month, settings.payroll_day)
    if disbursed_on.day > settings.cutoff_day:
        due_date = add_months(due_date, 1, day=settings.payroll_day)
    return due_date


def generate_installment_schedule(
    db: Session,
    loan_application_id: UUID,
    settings: Optional[PayrollSettings] = None,
    commit: bool = True
) -> List[LoanInstallment]:
    """
    Generate the installment schedule for a disbursed loan.

    Returns the created installments, or an empty list when a schedule
    already exists for the loan.
    """
    loan = db.query(LoanApplication).filter(LoanApplication.id == loan_application_id).first()
    if not loan:
        raise ValueError("Loan application not found")

    if loan.status != LoanStatus.DISBURSED:
        raise ValueError("Loan must be disbursed before generating installments")

    existing_count = db.query(LoanInstallment).filter(
        LoanInstallment.loan_application_id == loan.id
    ).count()
    if existing_count > 0:
        logger.warning("Installments already exist for loan %s", loan.loan_number)
        return []

    settings = settings or get_payroll_settings(db)
    disbursed_at = loan.disbursed_at or datetime.utcnow()
    first_due_date = calculate_first_due_date(disbursed_at.date(), settings)
    amount = to_decimal(loan.monthly_installment)

    installments = []
    for number in range(1, loan.loan_tenor + 1):
        installments.append(LoanInstallment(
            loan_application_id=loan.id,
            installment_number=number,
            due_date=add_months(first_due_date, number - 1, day=settings.payroll_day),
            amount=amount,
            is_paid=False,
        ))

    db.add_all(installments)
    if commit:
        db.commit()
    else:
        db.flush()

    logger.info("Generated %d installments for loan %s", len(installments), loan.loan_number)
    return installments


def get_loan_installment_summary(db: Session, loan_application_id: UUID) -> dict:
    """Paid/unpaid breakdown of a loan's schedule."""
    loan = db.query(LoanApplication).filter(LoanApplication.id == loan_application_id).first()
    if not loan:
        raise ValueError("Loan application not found")

    installments = db.query(LoanInstallment).filter(
        LoanInstallment.loan_application_id == loan.id
    ).order_by(LoanInstallment.installment_number).all()

    paid = [i for i in installments if i.is_paid]
    unpaid = [i for i in installments if not i.is_paid]

    return {
        "loan_id": str(loan.id),
        "loan_number": loan.loan_number,
        "status": loan.status.value,
        "total_installments": len(installments),
        "paid_installments": len(paid),
        "unpaid_installments": len(unpaid),
        "total_paid_amount": sum((to_decimal(i.paid_amount) for i in paid), ZERO),
        "total_unpaid_amount": sum((to_decimal(i.amount) for i in unpaid), ZERO),
        "installments": [
            {
                "id": str(i.id),
                "installment_number": i.installment_number,
                "due_date": i.due_date,
                "amount": to_decimal(i.amount),
                "is_paid": i.is_paid,
                "paid_at": i.paid_at,
                "paid_amount": to_decimal(i.paid_amount) if i.paid_amount is not None else None,
            }
            for i in installments
        ],
    }
