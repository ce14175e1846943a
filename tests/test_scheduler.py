"""Tests for the scheduled payroll job."""

import logging
from datetime import date
from decimal import Decimal

from koperasi.models import PayrollPeriod, SavingsAccount
from koperasi.services import scheduler
from koperasi.services.settings import PayrollSettingKeys


def test_skips_when_not_payroll_day(db):
    result = scheduler.run_scheduled_payroll(today=date(2025, 2, 26), session_factory=lambda: db)

    assert result is None
    assert db.query(PayrollPeriod).count() == 0


def test_runs_on_payroll_day(db, make_member, tmp_path, monkeypatch):
    from koperasi.core import config

    monkeypatch.setattr(config, "LOGS_DIR", tmp_path)
    member_id = make_member().id

    result = scheduler.run_scheduled_payroll(today=date(2025, 2, 27), session_factory=lambda: db)

    assert result["grand_total"] == Decimal("50000")
    period = db.query(PayrollPeriod).one()
    assert (period.month, period.year, period.is_processed) == (2, 2025, True)
    account = db.query(SavingsAccount).filter(SavingsAccount.member_id == member_id).one()
    assert account.mandatory_balance == Decimal("50000")

    audit_lines = (tmp_path / f"audit_{date.today():%Y_%m}.log").read_text().splitlines()
    assert "scheduler | payroll_processed" in audit_lines[-1]


def test_payroll_day_follows_settings(db, set_setting, tmp_path, monkeypatch):
    from koperasi.core import config

    monkeypatch.setattr(config, "LOGS_DIR", tmp_path)
    set_setting(PayrollSettingKeys.PAYROLL_DATE, "25")

    assert scheduler.run_scheduled_payroll(today=date(2025, 2, 27), session_factory=lambda: db) is None
    assert scheduler.run_scheduled_payroll(today=date(2025, 2, 25), session_factory=lambda: db) is not None


def test_payroll_day_past_month_end_runs_on_last_day(db, set_setting, tmp_path, monkeypatch):
    """Test a payroll day of 31 still settles February, on the 28th."""
    from koperasi.core import config

    monkeypatch.setattr(config, "LOGS_DIR", tmp_path)
    set_setting(PayrollSettingKeys.PAYROLL_DATE, "31")

    assert scheduler.run_scheduled_payroll(today=date(2025, 2, 27), session_factory=lambda: db) is None
    assert db.query(PayrollPeriod).count() == 0

    assert scheduler.run_scheduled_payroll(today=date(2025, 2, 28), session_factory=lambda: db) is not None
    period = db.query(PayrollPeriod).one()
    assert (period.month, period.year, period.is_processed) == (2, 2025, True)


def test_already_processed_is_logged_as_warning(db, tmp_path, monkeypatch, caplog):
    from koperasi.core import config

    monkeypatch.setattr(config, "LOGS_DIR", tmp_path)
    scheduler.run_scheduled_payroll(today=date(2025, 2, 27), session_factory=lambda: db)

    with caplog.at_level(logging.WARNING, logger="koperasi.services.scheduler"):
        result = scheduler.run_scheduled_payroll(today=date(2025, 2, 27), session_factory=lambda: db)

    assert result is None
    assert "already been processed" in caplog.text


def test_unexpected_error_is_contained(db, monkeypatch, caplog):
    def broken(db, month, year):
        raise RuntimeError("database went away")

    monkeypatch.setattr(scheduler, "process_payroll", broken)

    with caplog.at_level(logging.ERROR, logger="koperasi.services.scheduler"):
        result = scheduler.run_scheduled_payroll(today=date(2025, 2, 27), session_factory=lambda: db)

    assert result is None
    assert "Error in scheduled payroll" in caplog.text


def test_status_when_not_started():
    assert scheduler.get_scheduler_status() == {"running": False, "jobs": []}
