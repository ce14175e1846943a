from koperasi.db.base import Base

# Import all models so Alembic and create_all can see them
from koperasi.models.member import Member, MemberApplication, ApplicationStatus, InstallmentPlan
from koperasi.models.savings import SavingsAccount, SavingsTransaction
from koperasi.models.payroll import PayrollPeriod
from koperasi.models.deposit import DepositApplication, DepositHistory, DepositStatus
from koperasi.models.loan import LoanApplication, LoanInstallment, LoanHistory, LoanStatus
from koperasi.models.system import CooperativeSetting

__all__ = [
    "Base",
    "Member",
    "MemberApplication",
    "ApplicationStatus",
    "InstallmentPlan",
    "SavingsAccount",
    "SavingsTransaction",
    "PayrollPeriod",
    "DepositApplication",
    "DepositHistory",
    "DepositStatus",
    "LoanApplication",
    "LoanInstallment",
    "LoanHistory",
    "LoanStatus",
    "CooperativeSetting",
]
