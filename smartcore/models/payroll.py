# -*- coding: utf-8 -*-
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ..extensions import db


D = lambda v: Decimal(str(v)) if v is not None else Decimal("0")

PAYROLL_STATUSES = ("draft", "approved", "paid")


class EmployeeSalary(db.Model):
    __tablename__ = "employee_salaries"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    monthly_salary = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    effective_from = db.Column(db.Date, nullable=False, index=True)
    effective_to = db.Column(db.Date, nullable=True)  # NULL = currently effective
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Advance(db.Model):
    __tablename__ = "advances"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    advance_date = db.Column(db.Date, nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PayrollRecord(db.Model):
    __tablename__ = "payroll"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    pay_period_start = db.Column(db.Date, nullable=False)
    pay_period_end = db.Column(db.Date, nullable=False, index=True)
    base_salary = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    bonuses = db.Column(db.Numeric(12, 2), default=0)
    deductions = db.Column(db.Numeric(12, 2), default=0)
    net_pay = db.Column(db.Numeric(12, 2), default=0)
    status = db.Column(db.String(16), nullable=False, default="draft")  # draft|approved|paid
    payment_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, nullable=True)
    approved_by = db.Column(db.Integer, nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # at most one record per employee and pay period
    __table_args__ = (
        db.UniqueConstraint("employee_id", "pay_period_start", "pay_period_end", name="uq_payroll_period"),
    )

    def recompute_net_pay(self) -> Decimal:
        """Net pay = base salary + bonuses - deductions"""
        self.net_pay = D(self.base_salary) + D(self.bonuses) - D(self.deductions)
        return self.net_pay
