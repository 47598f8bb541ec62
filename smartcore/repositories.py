# -*- coding: utf-8 -*-
"""Data access for the payroll tables.

One repository per entity, each a thin wrapper over the Flask-SQLAlchemy
session. Engine code talks to these instead of issuing queries itself, so
tests and callers can substitute their own implementation.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from sqlalchemy import or_

from .extensions import db
from .models.payroll import D, Advance, EmployeeSalary, PayrollRecord


def pick_salary(rows: Iterable[EmployeeSalary]) -> EmployeeSalary | None:
    """Tie-break among overlapping salary rows.

    Most recent ``effective_from`` wins; equal dates fall back to the
    highest id (the row entered last).
    """
    best = None
    for r in rows:
        if best is None or (r.effective_from, r.id or 0) > (best.effective_from, best.id or 0):
            best = r
    return best


def salary_applies(row: EmployeeSalary, on: date) -> bool:
    return row.effective_from <= on and (row.effective_to is None or row.effective_to >= on)


def resolve_salary(rows: Iterable[EmployeeSalary], period_start: date) -> EmployeeSalary | None:
    """The single salary row in effect on ``period_start``, or None."""
    return pick_salary(r for r in rows if salary_applies(r, period_start))


class SalaryRepository:
    def for_employee(self, employee_id: int) -> list[EmployeeSalary]:
        return (
            EmployeeSalary.query.filter(EmployeeSalary.employee_id == employee_id)
            .order_by(EmployeeSalary.effective_from.desc(), EmployeeSalary.id.desc())
            .all()
        )

    def resolve(self, employee_id: int, period_start: date) -> EmployeeSalary | None:
        return resolve_salary(self.for_employee(employee_id), period_start)

    def intersecting(self, start: date, end: date) -> list[EmployeeSalary]:
        """Rows whose effective interval overlaps [start, end]."""
        return (
            EmployeeSalary.query.filter(
                EmployeeSalary.effective_from <= end,
                or_(EmployeeSalary.effective_to.is_(None), EmployeeSalary.effective_to >= start),
            )
            .order_by(EmployeeSalary.employee_id, EmployeeSalary.effective_from.desc())
            .all()
        )


class AdvanceRepository:
    def in_period(self, start: date, end: date, employee_id: int | None = None) -> list[Advance]:
        q = Advance.query.filter(Advance.advance_date >= start, Advance.advance_date <= end)
        if employee_id is not None:
            q = q.filter(Advance.employee_id == employee_id)
        return q.order_by(Advance.advance_date.asc(), Advance.id.asc()).all()

    def sum_for_period(self, employee_id: int, start: date, end: date) -> Decimal:
        """Total advances paid to one employee, both bounds inclusive."""
        return sum((D(a.amount) for a in self.in_period(start, end, employee_id)), Decimal("0"))

    def totals_for_period(self, start: date, end: date) -> dict[int, Decimal]:
        totals: dict[int, Decimal] = {}
        for a in self.in_period(start, end):
            totals[a.employee_id] = totals.get(a.employee_id, Decimal("0")) + D(a.amount)
        return totals


class PayrollRepository:
    def get(self, record_id: int) -> PayrollRecord | None:
        return db.session.get(PayrollRecord, record_id)

    def employees_with_record(self, start: date, end: date) -> set[int]:
        rows = (
            db.session.query(PayrollRecord.employee_id)
            .filter(PayrollRecord.pay_period_start == start, PayrollRecord.pay_period_end == end)
            .all()
        )
        return {r[0] for r in rows}

    def insert_batch(self, records: list[PayrollRecord]) -> int:
        """Insert all records in one transaction; nothing is kept on failure."""
        try:
            db.session.add_all(records)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return len(records)
