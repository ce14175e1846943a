"""Tests for deposit installment collection."""

from datetime import datetime
from decimal import Decimal

from koperasi.models import DepositHistory, DepositStatus, SavingsAccount
from koperasi.services.payroll.context import build_payroll_context
from koperasi.services.payroll.deposit_savings import process_deposit_savings


def _run(db, month, year, payroll_settings):
    context = build_payroll_context(db, month, year, settings=payroll_settings)
    result = process_deposit_savings(db, context)
    db.commit()
    return result


def test_deposit_runs_to_completion(db, make_member, make_deposit, payroll_settings):
    """Test a 3-month deposit of 200000 completes on the third run and stops."""
    member = make_member()
    deposit = make_deposit(member, approved_at=datetime(2025, 1, 5))

    first = _run(db, 1, 2025, payroll_settings)
    db.refresh(deposit)
    assert first.total_amount == Decimal("200000")
    assert deposit.status == DepositStatus.ACTIVE
    assert deposit.activated_at == datetime(2025, 1, 27)
    assert deposit.installment_count == 1

    _run(db, 2, 2025, payroll_settings)
    third = _run(db, 3, 2025, payroll_settings)
    db.refresh(deposit)

    assert third.details[0].description == "Tabungan deposito cicilan ke-3/3"
    assert deposit.status == DepositStatus.COMPLETED
    assert deposit.completed_at == datetime(2025, 3, 27)
    assert deposit.installment_count == 3
    assert deposit.collected_amount == Decimal("600000")

    fourth = _run(db, 4, 2025, payroll_settings)
    db.refresh(deposit)

    assert fourth.processed_count == 0
    assert deposit.installment_count == 3
    assert deposit.collected_amount == Decimal("600000")

    account = db.query(SavingsAccount).filter(SavingsAccount.member_id == member.id).one()
    assert account.voluntary_balance == Decimal("600000")

    actions = [h.action for h in db.query(DepositHistory).order_by(DepositHistory.action_at).all()]
    assert actions == ["INSTALLMENT_1", "INSTALLMENT_2", "COMPLETED"]


def test_deposit_approved_after_cutoff_starts_next_month(db, make_member, make_deposit, payroll_settings):
    member = make_member()
    make_deposit(member, approved_at=datetime(2025, 1, 20))

    assert _run(db, 1, 2025, payroll_settings).processed_count == 0
    assert _run(db, 2, 2025, payroll_settings).processed_count == 1


def test_pending_deposit_is_ignored(db, make_member, make_deposit, payroll_settings):
    member = make_member()
    make_deposit(member, approved_at=datetime(2025, 1, 5), status=DepositStatus.PENDING)

    assert _run(db, 1, 2025, payroll_settings).processed_count == 0
