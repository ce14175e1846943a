"""Tests for cutoff arithmetic and payroll period handling."""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from koperasi.models import PayrollPeriod
from koperasi.services.payroll.context import (
    build_payroll_context,
    calculate_cutoff_window,
    calculate_process_date,
    period_display_name,
)
from koperasi.services.payroll.errors import PayrollAlreadyProcessedError, PayrollReprocessBlockedError


def test_cutoff_window_for_february(payroll_settings):
    """Test cutoff 15 gives 16 Jan .. 15 Feb for February."""
    start, end = calculate_cutoff_window(2, 2025, payroll_settings)

    assert start == datetime(2025, 1, 16)
    assert end == datetime(2025, 2, 15)


def test_cutoff_window_crosses_year(payroll_settings):
    start, end = calculate_cutoff_window(1, 2025, payroll_settings)

    assert start == datetime(2024, 12, 16)
    assert end == datetime(2025, 1, 15)


def test_cutoff_day_clamped_to_short_month(payroll_settings):
    """Test a cutoff on the 31st is pulled back in short months."""
    settings = replace(payroll_settings, cutoff_day=31)

    start, end = calculate_cutoff_window(3, 2025, settings)

    assert end == datetime(2025, 3, 31)
    assert start == datetime(2025, 3, 1)

    start, end = calculate_cutoff_window(2, 2024, settings)
    assert end == datetime(2024, 2, 29)
    assert start == datetime(2024, 2, 1)


def test_process_date_uses_payroll_day(payroll_settings):
    assert calculate_process_date(2, 2025, payroll_settings) == datetime(2025, 2, 27)

    settings = replace(payroll_settings, payroll_day=30)
    assert calculate_process_date(2, 2025, settings) == datetime(2025, 2, 28)


def test_period_display_name():
    assert period_display_name(2, 2025) == "Periode Februari 2025"
    assert period_display_name(12, 2024) == "Periode Desember 2024"


def test_build_context_creates_period(db, payroll_settings):
    context = build_payroll_context(db, 2, 2025, settings=payroll_settings)

    period = db.query(PayrollPeriod).one()
    assert period.id == context.payroll_period_id
    assert period.name == "Periode Februari 2025"
    assert period.is_processed is False
    assert context.reprocess is False
    assert context.cutoff_end == datetime(2025, 2, 15)
    assert "16 Januari 2025 s/d 15 Februari 2025" in context.period_note()


def test_build_context_reuses_existing_period(db, payroll_settings):
    first = build_payroll_context(db, 2, 2025, settings=payroll_settings)
    second = build_payroll_context(db, 2, 2025, settings=payroll_settings)

    assert first.payroll_period_id == second.payroll_period_id
    assert db.query(PayrollPeriod).count() == 1


def test_invalid_month_rejected(db, payroll_settings):
    with pytest.raises(ValueError):
        build_payroll_context(db, 13, 2025, settings=payroll_settings)

    assert db.query(PayrollPeriod).count() == 0


def test_processed_period_rejected_without_force(db, payroll_settings):
    """Test an already processed period cannot be rebuilt."""
    db.add(PayrollPeriod(month=2, year=2025, name="Periode Februari 2025", is_processed=True,
                         processed_at=datetime(2025, 2, 27), total_amount=Decimal("100000")))
    db.commit()

    with pytest.raises(PayrollAlreadyProcessedError) as exc_info:
        build_payroll_context(db, 2, 2025, settings=payroll_settings)

    assert "already been processed" in str(exc_info.value)


def test_force_resets_processed_period(db, payroll_settings):
    db.add(PayrollPeriod(month=2, year=2025, name="Periode Februari 2025", is_processed=True,
                         processed_at=datetime(2025, 2, 27), total_amount=Decimal("100000")))
    db.commit()

    context = build_payroll_context(db, 2, 2025, force=True, settings=payroll_settings)

    period = db.query(PayrollPeriod).one()
    assert context.reprocess is True
    assert period.is_processed is False
    assert period.processed_at is None
    assert period.total_amount == Decimal("0.00")


def test_force_blocked_by_later_processed_period(db, payroll_settings):
    """Test only the latest settled period can be forced."""
    db.add(PayrollPeriod(month=12, year=2024, name="Periode Desember 2024", is_processed=True,
                         processed_at=datetime(2024, 12, 27), total_amount=Decimal("100000")))
    db.add(PayrollPeriod(month=1, year=2025, name="Periode Januari 2025", is_processed=True,
                         processed_at=datetime(2025, 1, 27), total_amount=Decimal("100000")))
    db.commit()

    with pytest.raises(PayrollReprocessBlockedError) as exc_info:
        build_payroll_context(db, 12, 2024, force=True, settings=payroll_settings)

    assert "later period 1-2025" in str(exc_info.value)
    december = db.query(PayrollPeriod).filter(PayrollPeriod.year == 2024).one()
    assert december.is_processed is True

    context = build_payroll_context(db, 1, 2025, force=True, settings=payroll_settings)
    assert context.reprocess is True


def test_unprocessed_later_period_does_not_block_force(db, payroll_settings):
    db.add(PayrollPeriod(month=1, year=2025, name="Periode Januari 2025", is_processed=True,
                         processed_at=datetime(2025, 1, 27), total_amount=Decimal("100000")))
    db.add(PayrollPeriod(month=2, year=2025, name="Periode Februari 2025", is_processed=False,
                         total_amount=Decimal("0.00")))
    db.commit()

    context = build_payroll_context(db, 1, 2025, force=True, settings=payroll_settings)

    assert context.reprocess is True
