"""Accumulators returned by the payroll processors and the orchestrator."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


class TransactionType:
    """Detail categories reported by the processors."""
    REGISTRATION_FEE = "IURAN_PENDAFTARAN"
    MANDATORY_FEE = "IURAN_BULANAN"
    DEPOSIT_INSTALLMENT = "TABUNGAN_DEPOSITO"
    LOAN_INSTALLMENT = "ANGSURAN_PINJAMAN"
    INTEREST = "BUNGA_SIMPANAN"


@dataclass
class ProcessorError:
    entity_type: str
    message: str
    entity_id: Optional[str] = None
    member_id: Optional[str] = None


@dataclass
class ProcessorDetail:
    member_id: str
    type: str
    amount: Decimal
    description: str
    member_name: Optional[str] = None


@dataclass
class ProcessorResult:
    """Count, total, errors and details of one processor run."""
    processed_count: int = 0
    total_amount: Decimal = Decimal("0.00")
    errors: List[ProcessorError] = field(default_factory=list)
    details: List[ProcessorDetail] = field(default_factory=list)

    def add(self, detail: ProcessorDetail) -> None:
        self.processed_count += 1
        self.total_amount += detail.amount
        self.details.append(detail)

    def fail(self, entity_type: str, message: str, entity_id=None, member_id=None) -> None:
        self.errors.append(ProcessorError(
            entity_type=entity_type,
            message=message,
            entity_id=str(entity_id) if entity_id is not None else None,
            member_id=str(member_id) if member_id is not None else None,
        ))


@dataclass
class PayrollSummary:
    period_id: str
    period_name: str
    processed_at: datetime
    membership: ProcessorResult
    mandatory_savings: ProcessorResult
    deposit_savings: ProcessorResult
    loan_installments: ProcessorResult
    interest: ProcessorResult
    grand_total: Decimal
