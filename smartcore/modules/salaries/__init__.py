# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user

from ...extensions import db
from ...models.payroll import EmployeeSalary
from ...security import capability_required
from ...utils import iso, money_out, opt_date, payload, to_date, to_int, to_money, to_text

bp = Blueprint("salaries", __name__, url_prefix="/salaries")


def _row(s: EmployeeSalary) -> dict:
    return {
        "id": s.id,
        "employee_id": s.employee_id,
        "monthly_salary": money_out(s.monthly_salary),
        "effective_from": iso(s.effective_from),
        "effective_to": iso(s.effective_to),
        "notes": s.notes,
    }


def _apply(s: EmployeeSalary, data: dict, creating: bool) -> None:
    if creating or "employee_id" in data:
        s.employee_id = to_int(data.get("employee_id"), "employee_id")
    if creating or "monthly_salary" in data:
        s.monthly_salary = to_money(data.get("monthly_salary"), "monthly_salary")
    if creating or "effective_from" in data:
        s.effective_from = to_date(data.get("effective_from"), "effective_from")
    if creating or "effective_to" in data:
        s.effective_to = opt_date(data.get("effective_to"), "effective_to")
    if s.effective_to is not None and s.effective_to < s.effective_from:
        raise ValueError("bad_effective_to")
    if "notes" in data:
        s.notes = to_text(data.get("notes"), "notes") or None


@bp.get("/")
@capability_required("salary.manage")
def index():
    q = EmployeeSalary.query
    emp = request.args.get("employee_id")
    if emp:
        try:
            q = q.filter(EmployeeSalary.employee_id == to_int(emp, "employee_id"))
        except ValueError as e:
            return jsonify({"ok": False, "error": str(e)}), 400
    rows = q.order_by(EmployeeSalary.effective_from.desc(), EmployeeSalary.id.desc()).all()
    return jsonify({"ok": True, "items": [_row(s) for s in rows]})


@bp.post("/")
@capability_required("salary.manage")
def create():
    s = EmployeeSalary(created_by=getattr(current_user, "id", None))
    try:
        _apply(s, payload(), creating=True)
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    db.session.add(s)
    db.session.commit()
    return jsonify({"ok": True, "item": _row(s)}), 201


@bp.put("/<int:salary_id>")
@capability_required("salary.manage")
def update(salary_id: int):
    s = db.session.get(EmployeeSalary, salary_id)
    if not s:
        return jsonify({"ok": False, "error": "not_found"}), 404
    try:
        _apply(s, payload(), creating=False)
    except ValueError as e:
        db.session.rollback()
        return jsonify({"ok": False, "error": str(e)}), 400
    db.session.commit()
    return jsonify({"ok": True, "item": _row(s)})


@bp.delete("/<int:salary_id>")
@capability_required("salary.manage")
def delete(salary_id: int):
    s = db.session.get(EmployeeSalary, salary_id)
    if not s:
        return jsonify({"ok": False, "error": "not_found"}), 404
    db.session.delete(s)
    db.session.commit()
    return jsonify({"ok": True})
