class PayrollError(Exception):
    """Exception for period-level payroll failures."""
    pass


class PayrollAlreadyProcessedError(PayrollError):
    """The period was already settled and force was not requested."""

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(f"Payroll period {month}-{year} has already been processed")


class PayrollPeriodNotFoundError(PayrollError):
    """No payroll period with the given id."""
    pass


class PayrollReprocessBlockedError(PayrollError):
    """Force was requested but a later period has already been settled."""

    def __init__(self, month: int, year: int, later_month: int, later_year: int):
        self.month = month
        self.year = year
        super().__init__(
            f"Payroll period {month}-{year} cannot be reprocessed: "
            f"later period {later_month}-{later_year} has already been processed"
        )
