from dataclasses import asdict
from datetime import datetime
from typing import Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from koperasi.core.audit import write_audit_log
from koperasi.db.base import get_db
from koperasi.schemas.payroll import ManualPayrollRequest, PayrollProcessResponse, PayrollSummaryResponse
from koperasi.services.installment import get_loan_installment_summary
from koperasi.services.payroll import (
    PayrollError,
    PayrollPeriodNotFoundError,
    get_payroll_history,
    get_payroll_status,
    get_period_transactions,
    preview_payroll,
    process_payroll,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payroll", tags=["payroll"])


def _resolve_period(month: Optional[int], year: Optional[int]):
    now = datetime.now()
    return month or now.month, year or now.year


@router.post("/process", response_model=PayrollProcessResponse)
def process_payroll_manually(
    request: ManualPayrollRequest,
    db: Session = Depends(get_db)
):
    """Settle a payroll period on demand (defaults to the current month)."""
    month, year = _resolve_period(request.month, request.year)
    logger.info("Manual payroll trigger for %s-%s (force=%s)", month, year, request.force)

    try:
        summary = process_payroll(db, month, year, force=request.force)
    except (PayrollError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error processing payroll: {str(e)}")

    write_audit_log(
        actor="api",
        action="payroll_processed",
        details=f"period={summary.period_name}, force={request.force}, grand_total={summary.grand_total}",
    )

    return {
        "message": "Payroll processed successfully",
        "data": PayrollSummaryResponse.model_validate(asdict(summary)),
    }


@router.get("/status")
def get_status(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2020),
    db: Session = Depends(get_db)
):
    """Processing status of a period; data is null when the period does not exist yet."""
    month, year = _resolve_period(month, year)
    try:
        status = get_payroll_status(db, month, year)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if status is None:
        return {"message": f"Payroll period {month}-{year} has not been created", "data": None}
    return {"message": "Payroll status retrieved", "data": status}


@router.get("/history")
def get_history(
    limit: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Latest payroll periods, newest first."""
    return {"data": get_payroll_history(db, limit=limit)}


@router.get("/period/{period_id}/transactions")
def get_transactions(
    period_id: UUID,
    db: Session = Depends(get_db)
):
    """Ledger rows written for a period."""
    try:
        return {"data": get_period_transactions(db, period_id)}
    except PayrollPeriodNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/preview")
def get_preview(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2020),
    db: Session = Depends(get_db)
):
    """What a settlement would pick up, without writing anything."""
    month, year = _resolve_period(month, year)
    try:
        return {"data": preview_payroll(db, month, year)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/loans/{loan_id}/installments")
def get_loan_installments(
    loan_id: UUID,
    db: Session = Depends(get_db)
):
    """Installment schedule and repayment progress of a loan."""
    try:
        return {"data": get_loan_installment_summary(db, loan_id)}
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
