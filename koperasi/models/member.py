from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Integer, Boolean, Enum as SQLEnum, Uuid, text, func
from sqlalchemy.orm import relationship
import uuid
from koperasi.db.base import Base
import enum
from decimal import Decimal


class ApplicationStatus(str, enum.Enum):
    """Membership application status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InstallmentPlan(int, enum.Enum):
    """How the entrance fee is deducted from salary."""
    FULL_PAYMENT = 1
    TWO_INSTALLMENTS = 2


class Member(Base):
    """Cooperative member (employee) record."""
    __tablename__ = "member"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(150), nullable=False)
    employee_number = Column(String(50), nullable=True, unique=True, index=True)
    member_verified = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    savings_account = relationship("SavingsAccount", back_populates="member", uselist=False)
    member_application = relationship("MemberApplication", back_populates="member", uselist=False)
    deposit_applications = relationship("DepositApplication", back_populates="member")
    loan_applications = relationship("LoanApplication", back_populates="member")


class MemberApplication(Base):
    """Membership application carrying the entrance fee obligation (simpanan pokok)."""
    __tablename__ = "member_application"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("member.id"), nullable=False, unique=True, index=True)
    status = Column(SQLEnum(ApplicationStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=ApplicationStatus.PENDING, nullable=False)
    entrance_fee = Column(Numeric(15, 2), nullable=False)
    paid_amount = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    remaining_amount = Column(Numeric(15, 2), nullable=False)
    is_paid_off = Column(Boolean, default=False, nullable=False)
    installment_plan = Column(Integer, nullable=False, default=InstallmentPlan.FULL_PAYMENT.value)  # 1 = full, 2 = two installments
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    member = relationship("Member", back_populates="member_application")
