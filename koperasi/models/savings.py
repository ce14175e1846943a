from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Text, UniqueConstraint, Uuid, text, func
from sqlalchemy.orm import relationship
import uuid
from koperasi.db.base import Base
from decimal import Decimal


class SavingsAccount(Base):
    """Member savings account with running balances.

    Each balance equals the sum of the matching SavingsTransaction field
    across all payroll periods.
    """
    __tablename__ = "savings_account"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("member.id"), nullable=False, unique=True, index=True)
    account_number = Column(String(50), nullable=True, unique=True)
    principal_balance = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))  # simpanan pokok
    mandatory_balance = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))  # simpanan wajib
    voluntary_balance = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))  # simpanan sukarela / deposito
    interest_balance = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))  # bunga deposito
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    member = relationship("Member", back_populates="savings_account")
    transactions = relationship("SavingsTransaction", back_populates="account")


class SavingsTransaction(Base):
    """Per-account, per-period ledger row."""
    __tablename__ = "savings_transaction"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    savings_account_id = Column(Uuid(as_uuid=True), ForeignKey("savings_account.id"), nullable=False, index=True)
    payroll_period_id = Column(Uuid(as_uuid=True), ForeignKey("payroll_period.id"), nullable=False, index=True)
    registration_fee = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    mandatory_fee = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    deposit_installment = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    interest = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    cumulative_interest = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    withdrawal = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    profit_share = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    interest_rate = Column(Numeric(5, 2), nullable=True)
    note = Column(Text, nullable=True)
    transaction_date = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    account = relationship("SavingsAccount", back_populates="transactions")
    payroll_period = relationship("PayrollPeriod", back_populates="transactions")

    # One ledger row per account per period
    __table_args__ = (
        UniqueConstraint("savings_account_id", "payroll_period_id", name="uq_savings_transaction_account_period"),
    )
