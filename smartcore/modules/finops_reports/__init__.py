# -*- coding: utf-8 -*-
from __future__ import annotations

from calendar import monthrange
from datetime import date
from decimal import Decimal

from flask import Blueprint, jsonify, request

from ...extensions import db
from ...models import Expense, PayrollRecord, User
from ...models.payroll import D
from ...payroll_engine import utc_today
from ...security import capability_required

bp = Blueprint("finops_reports", __name__, url_prefix="/reports")

WINDOW_MONTHS = {"month": 1, "quarter": 3, "year": 12}


def _months_back(d: date, months: int) -> date:
    y, m = divmod(d.year * 12 + (d.month - 1) - months, 12)
    m += 1
    # 31 March -> 28/29 February
    return date(y, m, min(d.day, monthrange(y, m)[1]))


def finops_metrics(period: str = "month", today: date | None = None) -> dict:
    if period not in WINDOW_MONTHS:
        raise ValueError("bad_period")
    today = today or utc_today()
    since = _months_back(today, WINDOW_MONTHS[period])

    expenses = (
        db.session.query(Expense.amount, Expense.status)
        .filter(Expense.expense_date >= since)
        .all()
    )
    total_expenses = sum((D(a) for a, _ in expenses), Decimal("0"))
    pending = sum(1 for _, s in expenses if s == "pending")

    net = db.session.query(PayrollRecord.net_pay).filter(PayrollRecord.pay_period_end >= since).all()
    total_payroll = sum((D(r[0]) for r in net), Decimal("0"))

    employees = db.session.query(User.id).filter(User.is_active.is_(True)).count()

    return {
        "period": period,
        "since": since.isoformat(),
        "total_expenses": total_expenses,
        "pending_expenses": pending,
        "total_payroll": total_payroll,
        "total_spending": total_expenses + total_payroll,
        "employee_count": employees,
    }


@bp.get("/finops")
@capability_required("reports.view")
def finops():
    period = (request.args.get("period") or "month").strip()
    try:
        m = finops_metrics(period)
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    for k in ("total_expenses", "total_payroll", "total_spending"):
        m[k] = float(m[k])
    return jsonify({"ok": True, **m})
