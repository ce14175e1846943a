"""Tests for loan installment settlement."""

from datetime import datetime
from decimal import Decimal

from koperasi.models import LoanHistory, LoanInstallment, LoanStatus, SavingsTransaction
from koperasi.services.installment import generate_installment_schedule
from koperasi.services.payroll.context import build_payroll_context
from koperasi.services.payroll.loan_installment import process_loan_installments


def _run(db, month, year, payroll_settings):
    context = build_payroll_context(db, month, year, settings=payroll_settings)
    result = process_loan_installments(db, context)
    db.commit()
    return context, result


def test_twelve_month_loan_completes_in_last_month(db, make_member, make_loan, payroll_settings):
    """Test one installment per month and completion on the twelfth."""
    member = make_member()
    loan = make_loan(member, disbursed_at=datetime(2025, 1, 10))
    generate_installment_schedule(db, loan.id, settings=payroll_settings)

    for month in range(1, 12):
        _, result = _run(db, month, 2025, payroll_settings)
        assert result.processed_count == 1
        assert result.total_amount == Decimal("1080000")
        db.refresh(loan)
        assert loan.status == LoanStatus.DISBURSED

    context, last = _run(db, 12, 2025, payroll_settings)
    db.refresh(loan)

    assert last.processed_count == 1
    assert loan.status == LoanStatus.COMPLETED
    assert loan.completed_at == datetime(2025, 12, 27)
    assert db.query(LoanInstallment).filter(LoanInstallment.is_paid.is_(False)).count() == 0

    history = db.query(LoanHistory).one()
    assert history.action == "INSTALLMENTS_COMPLETED"
    assert history.payroll_period_id == context.payroll_period_id

    # Loan repayments never touch the savings ledger
    assert db.query(SavingsTransaction).count() == 0


def test_only_current_month_installment_is_paid(db, make_member, make_loan, payroll_settings):
    member = make_member()
    loan = make_loan(member, disbursed_at=datetime(2025, 1, 10), tenor=3, installment=Decimal("340000"))
    generate_installment_schedule(db, loan.id, settings=payroll_settings)

    context, result = _run(db, 2, 2025, payroll_settings)

    paid = db.query(LoanInstallment).filter(LoanInstallment.is_paid.is_(True)).all()
    assert len(paid) == 1
    assert paid[0].installment_number == 2
    assert paid[0].paid_amount == Decimal("340000")
    assert paid[0].paid_at == datetime(2025, 2, 27)
    assert paid[0].payroll_period_id == context.payroll_period_id
    assert result.details[0].description == f"Angsuran ke-2/3 pinjaman {loan.loan_number}"


def test_completed_loan_installments_are_skipped(db, make_member, make_loan, payroll_settings):
    member = make_member()
    loan = make_loan(member, disbursed_at=datetime(2025, 1, 10), tenor=2, installment=Decimal("510000"))
    generate_installment_schedule(db, loan.id, settings=payroll_settings)
    loan.status = LoanStatus.COMPLETED
    db.commit()

    _, result = _run(db, 1, 2025, payroll_settings)

    assert result.processed_count == 0
