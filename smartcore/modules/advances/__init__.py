# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user

from ...extensions import db
from ...models.payroll import Advance
from ...security import capability_required
from ...utils import iso, money_out, opt_date, payload, to_date, to_int, to_money, to_text

bp = Blueprint("advances", __name__, url_prefix="/advances")


def _row(a: Advance) -> dict:
    return {
        "id": a.id,
        "employee_id": a.employee_id,
        "advance_date": iso(a.advance_date),
        "amount": money_out(a.amount),
        "notes": a.notes,
        "created_by": a.created_by,
    }


@bp.get("/")
@capability_required("advance.manage")
def index():
    q = Advance.query
    try:
        emp = request.args.get("employee_id")
        if emp:
            q = q.filter(Advance.employee_id == to_int(emp, "employee_id"))
        d1 = opt_date(request.args.get("start"), "start")
        d2 = opt_date(request.args.get("end"), "end")
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    if d1:
        q = q.filter(Advance.advance_date >= d1)
    if d2:
        q = q.filter(Advance.advance_date <= d2)
    rows = q.order_by(Advance.advance_date.desc(), Advance.id.desc()).all()
    return jsonify({"ok": True, "items": [_row(a) for a in rows]})


@bp.post("/")
@capability_required("advance.manage")
def create():
    data = payload()
    try:
        a = Advance(
            employee_id=to_int(data.get("employee_id"), "employee_id"),
            advance_date=to_date(data.get("advance_date"), "advance_date"),
            amount=to_money(data.get("amount"), "amount"),
            notes=to_text(data.get("notes"), "notes") or None,
            created_by=getattr(current_user, "id", None),
        )
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    db.session.add(a)
    db.session.commit()
    return jsonify({"ok": True, "item": _row(a)}), 201


@bp.put("/<int:advance_id>")
@capability_required("advance.manage")
def update(advance_id: int):
    a = db.session.get(Advance, advance_id)
    if not a:
        return jsonify({"ok": False, "error": "not_found"}), 404
    data = payload()
    try:
        if "employee_id" in data:
            a.employee_id = to_int(data.get("employee_id"), "employee_id")
        if "advance_date" in data:
            a.advance_date = to_date(data.get("advance_date"), "advance_date")
        if "amount" in data:
            a.amount = to_money(data.get("amount"), "amount")
        if "notes" in data:
            a.notes = to_text(data.get("notes"), "notes") or None
    except ValueError as e:
        db.session.rollback()
        return jsonify({"ok": False, "error": str(e)}), 400
    db.session.commit()
    return jsonify({"ok": True, "item": _row(a)})


@bp.delete("/<int:advance_id>")
@capability_required("advance.manage")
def delete(advance_id: int):
    a = db.session.get(Advance, advance_id)
    if not a:
        return jsonify({"ok": False, "error": "not_found"}), 404
    db.session.delete(a)
    db.session.commit()
    return jsonify({"ok": True})
