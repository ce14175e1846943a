from koperasi.services.payroll.errors import (
    PayrollError,
    PayrollAlreadyProcessedError,
    PayrollReprocessBlockedError,
    PayrollPeriodNotFoundError,
)
from koperasi.services.payroll.orchestrator import (
    process_payroll,
    get_payroll_status,
    get_payroll_history,
    get_period_transactions,
    preview_payroll,
)

__all__ = [
    "PayrollError",
    "PayrollAlreadyProcessedError",
    "PayrollReprocessBlockedError",
    "PayrollPeriodNotFoundError",
    "process_payroll",
    "get_payroll_status",
    "get_payroll_history",
    "get_period_transactions",
    "preview_payroll",
]
