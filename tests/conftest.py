"""Pytest fixtures for testing"""

import os

# Keep the module-level engine and scheduler away from real resources
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import itertools
from datetime import datetime
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from koperasi.db.base import enable_sqlite_savepoints, get_db
from koperasi.models import (
    Base, Member, MemberApplication, ApplicationStatus, InstallmentPlan,
    SavingsAccount, DepositApplication, DepositStatus, LoanApplication, LoanStatus,
    CooperativeSetting,
)
from koperasi.services.settings import PayrollSettings


engine = enable_sqlite_savepoints(create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_sequence = itertools.count(1)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, tmp_path, monkeypatch) -> TestClient:
    """Create FastAPI test client with test database"""
    from koperasi.core import config
    from koperasi.main import app

    monkeypatch.setattr(config, "LOGS_DIR", tmp_path / "logs")

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def payroll_settings() -> PayrollSettings:
    """Default payroll settings: cutoff 15th, payroll 27th, 4% savings interest."""
    return PayrollSettings(
        cutoff_day=15,
        payroll_day=27,
        monthly_membership_fee=Decimal("50000"),
        deposit_interest_rate=Decimal("4"),
        loan_interest_rate=Decimal("8"),
        initial_membership_fee=Decimal("500000"),
    )


@pytest.fixture
def set_setting(db):
    """Write a cooperative setting row."""
    def _set(key: str, value):
        existing = db.query(CooperativeSetting).filter(CooperativeSetting.key == key).first()
        if existing:
            existing.value = None if value is None else str(value)
        else:
            db.add(CooperativeSetting(key=key, value=None if value is None else str(value)))
        db.commit()
    return _set


@pytest.fixture
def make_member(db):
    """Create a verified member, with a savings account unless told otherwise."""
    def _make(name: str = None, verified: bool = True, with_account: bool = True, **balances) -> Member:
        number = next(_sequence)
        member = Member(
            name=name or f"Anggota {number:03d}",
            employee_number=f"EMP{number:05d}",
            member_verified=verified,
            verified_at=datetime(2024, 1, 1) if verified else None,
        )
        db.add(member)
        db.flush()
        if with_account:
            db.add(SavingsAccount(
                member_id=member.id,
                account_number=f"SA{number:06d}",
                principal_balance=balances.get("principal_balance", Decimal("0.00")),
                mandatory_balance=balances.get("mandatory_balance", Decimal("0.00")),
                voluntary_balance=balances.get("voluntary_balance", Decimal("0.00")),
                interest_balance=balances.get("interest_balance", Decimal("0.00")),
            ))
        db.commit()
        db.refresh(member)
        return member
    return _make


@pytest.fixture
def make_application(db):
    """Create an approved membership application with an unpaid entrance fee."""
    def _make(member: Member, approved_at: datetime, plan: InstallmentPlan = InstallmentPlan.FULL_PAYMENT,
              entrance_fee: Decimal = Decimal("500000"), status: ApplicationStatus = ApplicationStatus.APPROVED) -> MemberApplication:
        application = MemberApplication(
            member_id=member.id,
            status=status,
            entrance_fee=entrance_fee,
            paid_amount=Decimal("0.00"),
            remaining_amount=entrance_fee,
            is_paid_off=False,
            installment_plan=plan.value,
            approved_at=approved_at,
        )
        db.add(application)
        db.commit()
        return application
    return _make


@pytest.fixture
def make_deposit(db):
    """Create an approved deposit application."""
    def _make(member: Member, approved_at: datetime, amount: Decimal = Decimal("200000"),
              tenor: int = 3, status: DepositStatus = DepositStatus.APPROVED) -> DepositApplication:
        deposit = DepositApplication(
            deposit_number=f"DEP-{next(_sequence):05d}",
            member_id=member.id,
            amount_value=amount,
            tenor_months=tenor,
            installment_count=0,
            collected_amount=Decimal("0.00"),
            status=status,
            approved_at=approved_at,
        )
        db.add(deposit)
        db.commit()
        return deposit
    return _make


@pytest.fixture
def make_loan(db):
    """Create a disbursed loan without installments."""
    def _make(member: Member, disbursed_at: datetime, amount: Decimal = Decimal("12000000"),
              tenor: int = 12, installment: Decimal = Decimal("1080000"),
              status: LoanStatus = LoanStatus.DISBURSED) -> LoanApplication:
        loan = LoanApplication(
            loan_number=f"LN-{next(_sequence):05d}",
            member_id=member.id,
            loan_amount=amount,
            loan_tenor=tenor,
            interest_rate=Decimal("8"),
            monthly_installment=installment,
            total_repayment=installment * tenor,
            status=status,
            disbursed_at=disbursed_at,
        )
        db.add(loan)
        db.commit()
        return loan
    return _make
