from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class ManualPayrollRequest(BaseModel):
    """Schema for triggering settlement by hand."""
    month: Optional[int] = Field(None, ge=1, le=12, description="Payroll month (1-12), defaults to the current month")
    year: Optional[int] = Field(None, ge=2020, description="Payroll year, defaults to the current year")
    force: bool = Field(False, description="Reprocess a period that is already settled")


class ProcessorErrorResponse(BaseModel):
    entity_type: str
    message: str
    entity_id: Optional[str] = None
    member_id: Optional[str] = None


class ProcessorDetailResponse(BaseModel):
    member_id: str
    member_name: Optional[str] = None
    type: str
    amount: Decimal
    description: str


class ProcessorResultResponse(BaseModel):
    """Outcome of one processor step."""
    processed_count: int
    total_amount: Decimal
    errors: List[ProcessorErrorResponse] = Field(default_factory=list)
    details: List[ProcessorDetailResponse] = Field(default_factory=list)


class PayrollSummaryResponse(BaseModel):
    """Result of a settlement run."""
    period_id: str
    period_name: str
    processed_at: datetime
    membership: ProcessorResultResponse
    mandatory_savings: ProcessorResultResponse
    deposit_savings: ProcessorResultResponse
    loan_installments: ProcessorResultResponse
    interest: ProcessorResultResponse
    grand_total: Decimal


class PayrollProcessResponse(BaseModel):
    message: str
    data: PayrollSummaryResponse
