# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ...extensions import db
from ...models.expense import Expense
from ...models.task import Task, Vendor
from ...security import capability_required
from ...utils import iso, payload, to_text

bp = Blueprint("vendors", __name__, url_prefix="/vendors")


def _row(v: Vendor) -> dict:
    return {
        "id": v.id,
        "name": v.name,
        "contact_info": v.contact_info,
        "created_at": iso(v.created_at),
    }


def _apply(v: Vendor, data: dict, creating: bool) -> None:
    if creating or "name" in data:
        name = to_text(data.get("name"), "name")
        if not name:
            raise ValueError("name_required")
        v.name = name
    if "contact_info" in data:
        v.contact_info = to_text(data.get("contact_info"), "contact_info") or None


def _commit_or_conflict():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"ok": False, "error": "vendor_exists"}), 409
    return None


@bp.get("/")
@capability_required("vendor.view")
def index():
    q = Vendor.query
    search = (request.args.get("q") or "").strip()
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Vendor.name.ilike(like), Vendor.contact_info.ilike(like)))
    rows = q.order_by(Vendor.name).all()
    return jsonify({"ok": True, "items": [_row(v) for v in rows]})


@bp.post("/")
@capability_required("vendor.manage")
def create():
    v = Vendor()
    try:
        _apply(v, payload(), creating=True)
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    db.session.add(v)
    conflict = _commit_or_conflict()
    if conflict:
        return conflict
    return jsonify({"ok": True, "item": _row(v)}), 201


@bp.put("/<int:vendor_id>")
@capability_required("vendor.manage")
def update(vendor_id: int):
    v = db.session.get(Vendor, vendor_id)
    if not v:
        return jsonify({"ok": False, "error": "not_found"}), 404
    try:
        _apply(v, payload(), creating=False)
    except ValueError as e:
        db.session.rollback()
        return jsonify({"ok": False, "error": str(e)}), 400
    conflict = _commit_or_conflict()
    if conflict:
        return conflict
    return jsonify({"ok": True, "item": _row(v)})


@bp.delete("/<int:vendor_id>")
@capability_required("vendor.manage")
def delete(vendor_id: int):
    v = db.session.get(Vendor, vendor_id)
    if not v:
        return jsonify({"ok": False, "error": "not_found"}), 404
    # tasks and expenses keep their vendor reference
    in_use = (
        db.session.query(Task.id).filter(Task.vendor_id == v.id).first()
        or db.session.query(Expense.id).filter(Expense.vendor_id == v.id).first()
    )
    if in_use:
        return jsonify({"ok": False, "error": "vendor_in_use"}), 409
    db.session.delete(v)
    db.session.commit()
    return jsonify({"ok": True})
