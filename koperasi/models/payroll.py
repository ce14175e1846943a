from sqlalchemy import Column, String, DateTime, Numeric, Integer, Boolean, UniqueConstraint, Uuid, text, func
from sqlalchemy.orm import relationship
import uuid
from koperasi.db.base import Base
from decimal import Decimal


class PayrollPeriod(Base):
    """Monthly settlement period."""
    __tablename__ = "payroll_period"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    name = Column(String(100), nullable=False)  # e.g. "Periode Februari 2025"
    is_processed = Column(Boolean, default=False, nullable=False)
    processed_at = Column(DateTime, nullable=True)
    total_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    transactions = relationship("SavingsTransaction", back_populates="payroll_period")
    loan_installments = relationship("LoanInstallment", back_populates="payroll_period")

    # Unique constraint: one period per month/year
    __table_args__ = (
        UniqueConstraint("month", "year", name="uq_payroll_period_month_year"),
    )
