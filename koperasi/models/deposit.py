from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Integer, Text, Enum as SQLEnum, Uuid, text, func
from sqlalchemy.orm import relationship
import uuid
from koperasi.db.base import Base
import enum
from decimal import Decimal


class DepositStatus(str, enum.Enum):
    """Deposit application status."""
    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    COMPLETED = "completed"
    REJECTED = "rejected"


class DepositApplication(Base):
    """Voluntary deposit (tabungan deposito) collected per payroll period."""
    __tablename__ = "deposit_application"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    deposit_number = Column(String(50), nullable=False, unique=True, index=True)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("member.id"), nullable=False, index=True)
    amount_value = Column(Numeric(15, 2), nullable=False)  # per-period installment
    tenor_months = Column(Integer, nullable=False)
    installment_count = Column(Integer, nullable=False, default=0)
    collected_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    status = Column(SQLEnum(DepositStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=DepositStatus.PENDING, nullable=False)
    approved_at = Column(DateTime, nullable=True)
    activated_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    member = relationship("Member", back_populates="deposit_applications")
    history = relationship("DepositHistory", back_populates="deposit_application", order_by="DepositHistory.action_at")


class DepositHistory(Base):
    """Audit trail for deposit installments collected through payroll."""
    __tablename__ = "deposit_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    deposit_application_id = Column(Uuid(as_uuid=True), ForeignKey("deposit_application.id"), nullable=False, index=True)
    payroll_period_id = Column(Uuid(as_uuid=True), ForeignKey("payroll_period.id"), nullable=True, index=True)
    status = Column(SQLEnum(DepositStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    amount_value = Column(Numeric(15, 2), nullable=False)
    tenor_months = Column(Integer, nullable=False)
    action = Column(String(50), nullable=False)  # "INSTALLMENT_<n>" or "COMPLETED"
    action_at = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)
    reversed_at = Column(DateTime, nullable=True)

    # Relationships
    deposit_application = relationship("DepositApplication", back_populates="history")
