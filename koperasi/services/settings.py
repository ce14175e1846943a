from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from sqlalchemy.orm import Session

from koperasi.models.system import CooperativeSetting


class PayrollSettingKeys:
    """Setting keys read by the payroll engine."""
    CUTOFF_DATE = "cooperative_cutoff_date"
    PAYROLL_DATE = "cooperative_payroll_date"
    MONTHLY_MEMBERSHIP_FEE = "monthly_membership_fee"
    DEPOSIT_INTEREST_RATE = "deposit_interest_rate"
    LOAN_INTEREST_RATE = "loan_interest_rate"
    INITIAL_MEMBERSHIP_FEE = "initial_membership_fee"


DEFAULT_VALUES = {
    PayrollSettingKeys.CUTOFF_DATE: 15,
    PayrollSettingKeys.PAYROLL_DATE: 27,
    PayrollSettingKeys.MONTHLY_MEMBERSHIP_FEE: Decimal("50000"),
    PayrollSettingKeys.DEPOSIT_INTEREST_RATE: Decimal("4"),
    PayrollSettingKeys.LOAN_INTEREST_RATE: Decimal("8"),
    PayrollSettingKeys.INITIAL_MEMBERSHIP_FEE: Decimal("500000"),
}


@dataclass(frozen=True)
class PayrollSettings:
    """Settings snapshot used for a whole settlement run."""
    cutoff_day: int
    payroll_day: int
    monthly_membership_fee: Decimal
    deposit_interest_rate: Decimal
    loan_interest_rate: Decimal
    initial_membership_fee: Decimal


def _parse_day(raw: Optional[str], default: int) -> int:
    try:
        day = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return day if 1 <= day <= 31 else default


def _parse_decimal(raw: Optional[str], default: Decimal) -> Decimal:
    if raw is None or not str(raw).strip():
        return default
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        return default
    # Fees and rates are finite, non-negative amounts
    if not value.is_finite() or value < 0:
        return default
    return value


def get_setting_values(db: Session) -> Dict[str, Optional[str]]:
    """Raw values for the payroll keys that exist in the settings table."""
    rows = db.query(CooperativeSetting).filter(
        CooperativeSetting.key.in_(list(DEFAULT_VALUES.keys()))
    ).all()
    return {row.key: row.value for row in rows}


def get_payroll_settings(db: Session) -> PayrollSettings:
    """Resolve payroll settings, falling back to defaults for missing or bad values."""
    values = get_setting_values(db)
    keys = PayrollSettingKeys
    return PayrollSettings(
        cutoff_day=_parse_day(values.get(keys.CUTOFF_DATE), DEFAULT_VALUES[keys.CUTOFF_DATE]),
        payroll_day=_parse_day(values.get(keys.PAYROLL_DATE), DEFAULT_VALUES[keys.PAYROLL_DATE]),
        monthly_membership_fee=_parse_decimal(
            values.get(keys.MONTHLY_MEMBERSHIP_FEE), DEFAULT_VALUES[keys.MONTHLY_MEMBERSHIP_FEE]
        ),
        deposit_interest_rate=_parse_decimal(
            values.get(keys.DEPOSIT_INTEREST_RATE), DEFAULT_VALUES[keys.DEPOSIT_INTEREST_RATE]
        ),
        loan_interest_rate=_parse_decimal(
            values.get(keys.LOAN_INTEREST_RATE), DEFAULT_VALUES[keys.LOAN_INTEREST_RATE]
        ),
        initial_membership_fee=_parse_decimal(
            values.get(keys.INITIAL_MEMBERSHIP_FEE), DEFAULT_VALUES[keys.INITIAL_MEMBERSHIP_FEE]
        ),
    )
