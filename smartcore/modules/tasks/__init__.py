# -*- coding: utf-8 -*-
from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user
from sqlalchemy import or_

from ...acl import user_can
from ...extensions import db
from ...models.task import TASK_STATUSES, Task, TaskHistory, Vendor
from ...models.user import User
from ...security import capability_required
from ...utils import iso, money_out, opt_date, payload, to_date, to_int, to_money, to_text

logger = logging.getLogger(__name__)

bp = Blueprint("tasks", __name__, url_prefix="/tasks")

# free-text columns: (field, required)
TEXT_FIELDS = (
    ("call_description", True),
    ("customer_name", True),
    ("vendor_call_id", False),
    ("customer_address", False),
    ("remarks", False),
    ("scs_remarks", False),
)


def _row(t: Task) -> dict:
    return {
        "id": t.id,
        "scs_id": t.scs_id,
        "vendor_call_id": t.vendor_call_id,
        "vendor_id": t.vendor_id,
        "vendor": t.vendor.name if t.vendor else "",
        "call_description": t.call_description,
        "call_date": iso(t.call_date),
        "customer_name": t.customer_name,
        "customer_address": t.customer_address or "",
        "remarks": t.remarks or "",
        "scs_remarks": t.scs_remarks or "",
        "amount": money_out(t.amount),
        "status": t.status,
        "assigned_to": t.assigned_to,
        "created_by": t.created_by,
        "created_at": iso(t.created_at),
        "updated_at": iso(t.updated_at),
    }


def _history_row(h: TaskHistory) -> dict:
    return {
        "id": h.id,
        "task_id": h.task_id,
        "changed_by": h.changed_by,
        "changed_at": iso(h.changed_at),
        "action_type": h.action_type,
        "field_name": h.field_name,
        "old_value": h.old_value,
        "new_value": h.new_value,
    }


def _text(v) -> str | None:
    return None if v is None else str(v)


def _log(t: Task, action: str, field: str | None = None, old=None, new=None) -> None:
    t.history.append(TaskHistory(
        changed_by=getattr(current_user, "id", 0),
        action_type=action,
        field_name=field,
        old_value=_text(old),
        new_value=_text(new),
    ))


def _vendor_id(raw) -> int | None:
    if raw in (None, ""):
        return None
    vid = to_int(raw, "vendor_id")
    if db.session.get(Vendor, vid) is None:
        raise ValueError("bad_vendor_id")
    return vid


def _assignee_id(raw) -> int | None:
    if raw in (None, ""):
        return None
    uid = to_int(raw, "assigned_to")
    u = db.session.get(User, uid)
    if u is None or not u.is_active:
        raise ValueError("bad_assigned_to")
    return uid


def _status(raw) -> str:
    if raw not in TASK_STATUSES:
        raise ValueError("bad_status")
    return raw


def _parse(data: dict, creating: bool) -> dict:
    """Validated column values from the request body; raises ValueError(code)."""
    out = {}
    for name, required in TEXT_FIELDS:
        if creating or name in data:
            value = to_text(data.get(name), name)
            if required and not value:
                raise ValueError(f"{name}_required")
            out[name] = value or None
    if creating or "call_date" in data:
        out["call_date"] = to_date(data.get("call_date"), "call_date")
    if "amount" in data:
        out["amount"] = to_money(data["amount"], "amount") if data["amount"] not in (None, "") else None
    if "vendor_id" in data:
        out["vendor_id"] = _vendor_id(data["vendor_id"])
    if "assigned_to" in data:
        out["assigned_to"] = _assignee_id(data["assigned_to"])
    if "status" in data:
        out["status"] = _status(data["status"])
    return out


def _may_edit(t: Task) -> bool:
    if user_can(current_user, "task.edit_any"):
        return True
    uid = getattr(current_user, "id", 0)
    return uid in (t.created_by, t.assigned_to)


def _change(t: Task, field: str, value) -> None:
    old = getattr(t, field)
    if old == value:
        return
    setattr(t, field, value)
    if field == "status":
        _log(t, "status_changed", "status", old, value)
    elif field == "assigned_to":
        _log(t, "assigned", "assigned_to", old, value)
    else:
        _log(t, "updated", field, old, value)


# ------------ list / read -----------------------------------------------------
@bp.get("/")
@capability_required("task.view")
def index():
    q = Task.query
    try:
        vendor = request.args.get("vendor_id")
        if vendor:
            q = q.filter(Task.vendor_id == to_int(vendor, "vendor_id"))
        assignee = request.args.get("assigned_to")
        if assignee:
            q = q.filter(Task.assigned_to == to_int(assignee, "assigned_to"))
        d1 = opt_date(request.args.get("start"), "start")
        d2 = opt_date(request.args.get("end"), "end")
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    status = (request.args.get("status") or "").strip()
    if status:
        if status not in TASK_STATUSES:
            return jsonify({"ok": False, "error": "bad_status"}), 400
        q = q.filter(Task.status == status)
    if d1:
        q = q.filter(Task.call_date >= d1)
    if d2:
        q = q.filter(Task.call_date <= d2)
    search = (request.args.get("q") or "").strip()
    if search:
        like = f"%{search}%"
        q = q.filter(or_(
            Task.scs_id.ilike(like),
            Task.vendor_call_id.ilike(like),
            Task.call_description.ilike(like),
            Task.customer_name.ilike(like),
            Task.customer_address.ilike(like),
        ))
    rows = q.order_by(Task.created_at.desc(), Task.id.desc()).all()
    return jsonify({"ok": True, "items": [_row(t) for t in rows]})


@bp.get("/<int:task_id>")
@capability_required("task.view")
def show(task_id: int):
    t = db.session.get(Task, task_id)
    if not t:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "item": _row(t)})


@bp.get("/<int:task_id>/history")
@capability_required("task.view")
def history(task_id: int):
    t = db.session.get(Task, task_id)
    if not t:
        return jsonify({"ok": False, "error": "not_found"}), 404
    rows = (
        TaskHistory.query.filter_by(task_id=t.id)
        .order_by(TaskHistory.changed_at.desc(), TaskHistory.id.desc())
        .all()
    )
    return jsonify({"ok": True, "items": [_history_row(h) for h in rows]})


# ------------ write -----------------------------------------------------------
@bp.post("/")
@capability_required("task.edit")
def create():
    data = payload()
    try:
        values = _parse(data, creating=True)
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    values.setdefault("status", "assigned" if values.get("assigned_to") else "unassigned")
    t = Task(created_by=getattr(current_user, "id", 0), **values)
    db.session.add(t)
    db.session.flush()
    t.scs_id = f"SCS-{t.id:06d}"
    _log(t, "created", None, None, t.status)
    db.session.commit()
    logger.info("Task %s created by user %s", t.scs_id, t.created_by)
    return jsonify({"ok": True, "item": _row(t)}), 201


@bp.put("/<int:task_id>")
@capability_required("task.edit")
def update(task_id: int):
    t = db.session.get(Task, task_id)
    if not t:
        return jsonify({"ok": False, "error": "not_found"}), 404
    if not _may_edit(t):
        return jsonify({"ok": False, "error": "forbidden"}), 403
    try:
        values = _parse(payload(), creating=False)
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    for field, value in values.items():
        _change(t, field, value)
    db.session.commit()
    return jsonify({"ok": True, "item": _row(t)})


@bp.post("/<int:task_id>/status")
@capability_required("task.edit")
def set_status(task_id: int):
    t = db.session.get(Task, task_id)
    if not t:
        return jsonify({"ok": False, "error": "not_found"}), 404
    if not _may_edit(t):
        return jsonify({"ok": False, "error": "forbidden"}), 403
    try:
        status = _status(payload().get("status"))
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    _change(t, "status", status)
    db.session.commit()
    return jsonify({"ok": True, "item": _row(t)})


@bp.delete("/<int:task_id>")
@capability_required("task.delete")
def delete(task_id: int):
    t = db.session.get(Task, task_id)
    if not t:
        return jsonify({"ok": False, "error": "not_found"}), 404
    db.session.delete(t)
    db.session.commit()
    return jsonify({"ok": True})
