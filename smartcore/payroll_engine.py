# -*- coding: utf-8 -*-
"""Monthly payroll reconciliation.

previous_month_period -> salaries per employee -> advances per employee ->
draft PayrollRecord rows. balance_due() is evaluated later, on demand, by
reporting code.
"""
from __future__ import annotations

import logging
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from .models.payroll import D, PAYROLL_STATUSES, PayrollRecord
from .repositories import AdvanceRepository, PayrollRepository, SalaryRepository, pick_salary

logger = logging.getLogger(__name__)

AUTO_NOTE = "Auto-generated payroll record"


@dataclass(frozen=True)
class PayPeriod:
    start: date
    end: date

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass
class GenerationResult:
    message: str
    created: int
    period: PayPeriod
    skipped: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        out: dict = {"message": self.message, "created": self.created}
        if self.created:
            out["period"] = self.period.to_dict()
        return out


class StatusTransitionError(ValueError):
    pass


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _as_utc_date(reference: date | datetime | None) -> date:
    if reference is None:
        return utc_today()
    if isinstance(reference, datetime):
        if reference.tzinfo is not None:
            reference = reference.astimezone(timezone.utc)
        return reference.date()
    return reference


def previous_month_period(reference: date | datetime | None = None) -> PayPeriod:
    """Inclusive calendar month preceding ``reference`` (UTC "now" by default)."""
    ref = _as_utc_date(reference)
    end = date(ref.year, ref.month, 1) - timedelta(days=1)
    return PayPeriod(date(end.year, end.month, 1), end)


def month_period(year: int, month: int) -> PayPeriod:
    return PayPeriod(date(year, month, 1), date(year, month, monthrange(year, month)[1]))


def generate_for_period(
    start: date | None = None,
    end: date | None = None,
    *,
    today: date | datetime | None = None,
    salaries: SalaryRepository | None = None,
    advances: AdvanceRepository | None = None,
    payroll: PayrollRepository | None = None,
) -> GenerationResult:
    """Create one draft payroll record per salaried employee for the period.

    Employees that already have a record for exactly this period are left
    alone, so a rerun only fills the gaps. Data-access errors propagate; the
    insert is all-or-nothing.
    """
    if (start is None) != (end is None):
        raise ValueError("start and end must be given together")
    period = PayPeriod(start, end) if start is not None else previous_month_period(today)
    if period.end < period.start:
        raise ValueError("period end precedes start")

    salaries = salaries or SalaryRepository()
    advances = advances or AdvanceRepository()
    payroll = payroll or PayrollRepository()

    logger.info("Generating payroll for period: %s to %s", period.start, period.end)

    rows = salaries.intersecting(period.start, period.end)
    if not rows:
        logger.info("No active salaries found for the period")
        return GenerationResult("No active salaries found", 0, period)

    by_employee: dict[int, list] = {}
    for r in rows:
        by_employee.setdefault(r.employee_id, []).append(r)
    base: dict[int, Decimal] = {
        emp: D(pick_salary(emp_rows).monthly_salary) for emp, emp_rows in by_employee.items()
    }

    existing = payroll.employees_with_record(period.start, period.end)
    totals = advances.totals_for_period(period.start, period.end)

    records: list[PayrollRecord] = []
    skipped: list[int] = []
    for emp in sorted(base):
        if emp in existing:
            logger.info("Skipping employee %s - payroll already exists", emp)
            skipped.append(emp)
            continue
        total_advances = totals.get(emp, Decimal("0"))
        records.append(PayrollRecord(
            employee_id=emp,
            pay_period_start=period.start,
            pay_period_end=period.end,
            base_salary=base[emp],
            bonuses=Decimal("0"),
            deductions=total_advances,
            net_pay=base[emp] - total_advances,
            status="draft",
            notes=AUTO_NOTE,
        ))

    if not records:
        logger.info("All payroll records already exist for this period")
        return GenerationResult("All payroll records already exist", 0, period, skipped)

    try:
        created = payroll.insert_batch(records)
    except Exception:
        logger.exception("Error inserting payroll records for %s..%s", period.start, period.end)
        raise
    logger.info("Successfully created %d payroll records", created)
    return GenerationResult("Payroll records generated successfully", created, period, skipped)


def balance_due(record: PayrollRecord, advances: AdvanceRepository | None = None) -> Decimal:
    """Net pay less the advances currently dated inside the record's period.

    Recomputed on every call. Advances already deducted when the record was
    generated are subtracted again here.
    """
    advances = advances or AdvanceRepository()
    paid_out = advances.sum_for_period(record.employee_id, record.pay_period_start, record.pay_period_end)
    return D(record.net_pay) - paid_out


def advance_status(record: PayrollRecord, new_status: str, actor_id: int | None = None,
                   today: date | None = None) -> None:
    """draft -> approved -> paid, forward only."""
    if new_status not in PAYROLL_STATUSES:
        raise StatusTransitionError(f"unknown status {new_status!r}")
    cur = record.status or "draft"
    if PAYROLL_STATUSES.index(new_status) < PAYROLL_STATUSES.index(cur):
        raise StatusTransitionError(f"cannot move payroll from {cur} to {new_status}")
    if new_status == cur:
        return
    if new_status in ("approved", "paid") and record.approved_at is None:
        record.approved_by = actor_id
        record.approved_at = datetime.utcnow()
    if new_status == "paid" and record.payment_date is None:
        record.payment_date = today or utc_today()
    record.status = new_status
