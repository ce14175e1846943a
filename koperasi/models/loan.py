from sqlalchemy import Column, String, ForeignKey, DateTime, Date, Numeric, Integer, Boolean, Text, Enum as SQLEnum, UniqueConstraint, Uuid, text, func
from sqlalchemy.orm import relationship
import uuid
from koperasi.db.base import Base
import enum


class LoanStatus(str, enum.Enum):
    """Loan status."""
    PENDING = "pending"
    APPROVED = "approved"
    DISBURSED = "disbursed"
    COMPLETED = "completed"
    REJECTED = "rejected"


class LoanApplication(Base):
    """Loan repaid through monthly salary deduction."""
    __tablename__ = "loan_application"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_number = Column(String(50), nullable=False, unique=True, index=True)
    member_id = Column(Uuid(as_uuid=True), ForeignKey("member.id"), nullable=False, index=True)
    loan_amount = Column(Numeric(15, 2), nullable=False)
    loan_tenor = Column(Integer, nullable=False)  # months
    interest_rate = Column(Numeric(5, 2), nullable=True)
    monthly_installment = Column(Numeric(15, 2), nullable=True)
    total_repayment = Column(Numeric(15, 2), nullable=True)
    status = Column(SQLEnum(LoanStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=LoanStatus.PENDING, nullable=False)
    disbursed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    member = relationship("Member", back_populates="loan_applications")
    installments = relationship("LoanInstallment", back_populates="loan_application", order_by="LoanInstallment.installment_number")
    history = relationship("LoanHistory", back_populates="loan_application", order_by="LoanHistory.action_at")


class LoanInstallment(Base):
    """One scheduled monthly repayment of a disbursed loan."""
    __tablename__ = "loan_installment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_application_id = Column(Uuid(as_uuid=True), ForeignKey("loan_application.id"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    paid_amount = Column(Numeric(15, 2), nullable=True)
    payroll_period_id = Column(Uuid(as_uuid=True), ForeignKey("payroll_period.id"), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    loan_application = relationship("LoanApplication", back_populates="installments")
    payroll_period = relationship("PayrollPeriod", back_populates="loan_installments")

    __table_args__ = (
        UniqueConstraint("loan_application_id", "installment_number", name="uq_loan_installment_number"),
    )


class LoanHistory(Base):
    """Lifecycle trail for loans."""
    __tablename__ = "loan_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_application_id = Column(Uuid(as_uuid=True), ForeignKey("loan_application.id"), nullable=False, index=True)
    payroll_period_id = Column(Uuid(as_uuid=True), ForeignKey("payroll_period.id"), nullable=True, index=True)
    status = Column(SQLEnum(LoanStatus, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    action = Column(String(50), nullable=False)
    action_at = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)
    reversed_at = Column(DateTime, nullable=True)

    # Relationships
    loan_application = relationship("LoanApplication", back_populates="history")
