# -*- coding: utf-8 -*-
from __future__ import annotations

from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_login import current_user

from ...acl import user_can
from ...extensions import db
from ...models.expense import EXPENSE_CATEGORIES, EXPENSE_STATUSES, Expense
from ...models.task import Vendor
from ...security import capability_required
from ...utils import iso, money_out, payload, to_date, to_int, to_money, to_text

bp = Blueprint("expenses", __name__, url_prefix="/expenses")


def _row(e: Expense) -> dict:
    return {
        "id": e.id,
        "expense_date": iso(e.expense_date),
        "amount": money_out(e.amount),
        "category": e.category,
        "description": e.description,
        "vendor_id": e.vendor_id,
        "receipt_url": e.receipt_url,
        "status": e.status,
        "created_by": e.created_by,
        "approved_by": e.approved_by,
        "approved_at": iso(e.approved_at),
    }


def _apply(e: Expense, data: dict, creating: bool) -> None:
    if creating or "expense_date" in data:
        e.expense_date = to_date(data.get("expense_date"), "expense_date")
    if creating or "amount" in data:
        e.amount = to_money(data.get("amount"), "amount")
    if creating or "category" in data:
        cat = to_text(data.get("category"), "category", "other")
        if cat not in EXPENSE_CATEGORIES:
            raise ValueError("bad_category")
        e.category = cat
    if creating or "description" in data:
        desc = to_text(data.get("description"), "description")
        if not desc:
            raise ValueError("description_required")
        e.description = desc
    if "vendor_id" in data:
        vid = to_int(data["vendor_id"], "vendor_id") if data.get("vendor_id") else None
        if vid is not None and db.session.get(Vendor, vid) is None:
            raise ValueError("bad_vendor_id")
        e.vendor_id = vid
    if "receipt_url" in data:
        e.receipt_url = to_text(data.get("receipt_url"), "receipt_url") or None


def _own_pending(e: Expense) -> bool:
    return e.status == "pending" and e.created_by == getattr(current_user, "id", 0)


@bp.get("/")
@capability_required("expense.view")
def index():
    q = Expense.query
    # non-approvers only see their own
    if not user_can(current_user, "expense.approve"):
        q = q.filter(Expense.created_by == getattr(current_user, "id", 0))
    status = (request.args.get("status") or "").strip()
    if status:
        q = q.filter(Expense.status == status)
    rows = q.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()
    return jsonify({"ok": True, "items": [_row(e) for e in rows]})


@bp.post("/")
@capability_required("expense.create")
def create():
    e = Expense(status="pending", created_by=getattr(current_user, "id", 0))
    try:
        _apply(e, payload(), creating=True)
    except ValueError as err:
        return jsonify({"ok": False, "error": str(err)}), 400
    db.session.add(e)
    db.session.commit()
    return jsonify({"ok": True, "item": _row(e)}), 201


@bp.put("/<int:expense_id>")
@capability_required("expense.create")
def update(expense_id: int):
    e = db.session.get(Expense, expense_id)
    if not e:
        return jsonify({"ok": False, "error": "not_found"}), 404
    if not _own_pending(e):
        return jsonify({"ok": False, "error": "forbidden"}), 403
    try:
        _apply(e, payload(), creating=False)
    except ValueError as err:
        db.session.rollback()
        return jsonify({"ok": False, "error": str(err)}), 400
    db.session.commit()
    return jsonify({"ok": True, "item": _row(e)})


@bp.post("/<int:expense_id>/status")
@capability_required("expense.approve")
def set_status(expense_id: int):
    e = db.session.get(Expense, expense_id)
    if not e:
        return jsonify({"ok": False, "error": "not_found"}), 404
    status = payload().get("status")
    if status not in EXPENSE_STATUSES:
        return jsonify({"ok": False, "error": "bad_status"}), 400
    e.status = status
    if status == "approved":
        e.approved_by = getattr(current_user, "id", None)
        e.approved_at = datetime.utcnow()
    db.session.commit()
    return jsonify({"ok": True, "item": _row(e)})


@bp.delete("/<int:expense_id>")
@capability_required("expense.create")
def delete(expense_id: int):
    e = db.session.get(Expense, expense_id)
    if not e:
        return jsonify({"ok": False, "error": "not_found"}), 404
    if not (_own_pending(e) or user_can(current_user, "expense.delete_any")):
        return jsonify({"ok": False, "error": "forbidden"}), 403
    db.session.delete(e)
    db.session.commit()
    return jsonify({"ok": True})
