# -*- coding: utf-8 -*-
from __future__ import annotations

import hmac
import logging
from decimal import Decimal

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ...acl import user_can
from ...extensions import db
from ...models.payroll import PAYROLL_STATUSES, PayrollRecord
from ...payroll_engine import (
    StatusTransitionError,
    advance_status,
    balance_due,
    generate_for_period,
    utc_today,
)
from ...repositories import SalaryRepository
from ...security import capability_required
from ...utils import iso, money_out, opt_date, payload, to_date, to_int, to_money, to_text

logger = logging.getLogger(__name__)

bp = Blueprint("payroll", __name__, url_prefix="/payroll")


def _row(p: PayrollRecord) -> dict:
    return {
        "id": p.id,
        "employee_id": p.employee_id,
        "pay_period_start": iso(p.pay_period_start),
        "pay_period_end": iso(p.pay_period_end),
        "base_salary": money_out(p.base_salary),
        "bonuses": money_out(p.bonuses),
        "deductions": money_out(p.deductions),
        "net_pay": money_out(p.net_pay),
        "status": p.status,
        "payment_date": iso(p.payment_date),
        "notes": p.notes,
        "approved_by": p.approved_by,
        "approved_at": iso(p.approved_at),
    }


def _bad(code: str, status: int = 400):
    return jsonify({"ok": False, "error": code}), status


def _status_arg(value) -> str:
    if value not in PAYROLL_STATUSES:
        raise ValueError("bad_status")
    return value


def _apply_fields(p: PayrollRecord, data: dict, creating: bool) -> None:
    """Copy editable fields from the request body; raises ValueError(code)."""
    if creating or "employee_id" in data:
        p.employee_id = to_int(data.get("employee_id"), "employee_id")
    if creating or "pay_period_start" in data:
        p.pay_period_start = to_date(data.get("pay_period_start"), "pay_period_start")
    if creating or "pay_period_end" in data:
        p.pay_period_end = to_date(data.get("pay_period_end"), "pay_period_end")
    if p.pay_period_end < p.pay_period_start:
        raise ValueError("bad_period")

    if data.get("base_salary") not in (None, ""):
        p.base_salary = to_money(data["base_salary"], "base_salary")
    elif creating:
        # prefill from salary history; manual entry needed when nothing applies
        sal = SalaryRepository().resolve(p.employee_id, p.pay_period_start)
        if sal is None:
            raise ValueError("salary_required")
        p.base_salary = sal.monthly_salary
    for name in ("bonuses", "deductions"):
        if data.get(name) not in (None, ""):
            setattr(p, name, to_money(data[name], name))
        elif creating:
            setattr(p, name, Decimal("0"))
    if "payment_date" in data:
        p.payment_date = opt_date(data.get("payment_date"), "payment_date")
    if "notes" in data:
        p.notes = to_text(data.get("notes"), "notes") or None
    p.recompute_net_pay()


# ------------ list / read -----------------------------------------------------
@bp.get("/")
@capability_required("payroll.view")
def index():
    q = PayrollRecord.query
    emp = request.args.get("employee_id")
    if emp:
        try:
            q = q.filter(PayrollRecord.employee_id == to_int(emp, "employee_id"))
        except ValueError as e:
            return _bad(str(e))
    status = (request.args.get("status") or "").strip()
    if status:
        q = q.filter(PayrollRecord.status == status)
    rows = q.order_by(PayrollRecord.pay_period_end.desc(), PayrollRecord.id.desc()).all()
    return jsonify({"ok": True, "items": [_row(p) for p in rows]})


@bp.get("/<int:record_id>")
@capability_required("payroll.view")
def show(record_id: int):
    p = db.session.get(PayrollRecord, record_id)
    if not p:
        return _bad("not_found", 404)
    return jsonify({"ok": True, "item": _row(p)})


@bp.get("/<int:record_id>/balance")
@capability_required("payroll.view")
def balance(record_id: int):
    p = db.session.get(PayrollRecord, record_id)
    if not p:
        return _bad("not_found", 404)
    return jsonify({
        "ok": True,
        "id": p.id,
        "net_pay": money_out(p.net_pay),
        "balance_due": money_out(balance_due(p)),
    })


@bp.get("/salary-lookup")
@capability_required("payroll.manage")
def salary_lookup():
    try:
        emp = to_int(request.args.get("employee_id"), "employee_id")
        start = to_date(request.args.get("period_start"), "period_start")
    except ValueError as e:
        return _bad(str(e))
    sal = SalaryRepository().resolve(emp, start)
    return jsonify({
        "ok": True,
        "found": sal is not None,
        "monthly_salary": money_out(sal.monthly_salary) if sal else None,
        "salary_id": sal.id if sal else None,
    })


# ------------ write -----------------------------------------------------------
@bp.post("/")
@capability_required("payroll.manage")
def create():
    data = payload()
    p = PayrollRecord(status="draft", created_by=getattr(current_user, "id", None))
    try:
        _apply_fields(p, data, creating=True)
        status = _status_arg(data.get("status") or "draft")
    except ValueError as e:
        return _bad(str(e))
    # new records start as draft, every known status is a forward move
    advance_status(p, status, getattr(current_user, "id", None))
    db.session.add(p)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return _bad("duplicate_period", 409)
    return jsonify({"ok": True, "item": _row(p)}), 201


@bp.put("/<int:record_id>")
@capability_required("payroll.manage")
def update(record_id: int):
    p = db.session.get(PayrollRecord, record_id)
    if not p:
        return _bad("not_found", 404)
    data = payload()
    try:
        _apply_fields(p, data, creating=False)
        if "status" in data:
            advance_status(p, _status_arg(data["status"]), getattr(current_user, "id", None))
    except StatusTransitionError as e:
        db.session.rollback()
        return _bad(str(e), 409)
    except ValueError as e:
        db.session.rollback()
        return _bad(str(e))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return _bad("duplicate_period", 409)
    return jsonify({"ok": True, "item": _row(p)})


@bp.post("/<int:record_id>/status")
@capability_required("payroll.manage")
def set_status(record_id: int):
    p = db.session.get(PayrollRecord, record_id)
    if not p:
        return _bad("not_found", 404)
    try:
        status = _status_arg(payload().get("status"))
    except ValueError as e:
        return _bad(str(e))
    try:
        advance_status(p, status, getattr(current_user, "id", None))
    except StatusTransitionError as e:
        db.session.rollback()
        return _bad(str(e), 409)
    db.session.commit()
    return jsonify({"ok": True, "item": _row(p)})


@bp.delete("/<int:record_id>")
@capability_required("payroll.manage")
def delete(record_id: int):
    p = db.session.get(PayrollRecord, record_id)
    if not p:
        return _bad("not_found", 404)
    db.session.delete(p)
    db.session.commit()
    return jsonify({"ok": True})


# ------------ monthly generation ------------------------------------------------
def _cron_token_ok() -> bool:
    expected = current_app.config.get("PAYROLL_CRON_TOKEN") or ""
    given = request.headers.get("X-Cron-Token") or ""
    return bool(expected) and hmac.compare_digest(expected, given)


@bp.post("/generate")
def generate():
    if not _cron_token_ok():
        if not current_user.is_authenticated:
            return _bad("unauthorized", 401)
        if not user_can(current_user, "payroll.generate"):
            return _bad("forbidden", 403)

    data = payload()
    try:
        start = opt_date(data.get("start"), "start")
        end = opt_date(data.get("end"), "end")
        result = generate_for_period(start, end, today=utc_today())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error generating payroll: %s", e)
        return jsonify({"error": str(e)}), 500
    return jsonify(result.to_dict())
