# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user
from sqlalchemy.exc import IntegrityError

from .extensions import db
from .models.user import ROLES, User, UserRole
from .security import capability_required
from .utils import payload, to_text

bp = Blueprint("admin_mgmt", __name__, url_prefix="/admin")

# ---------- helpers ----------
def _user_row(u: User) -> dict:
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "full_name": u.full_name,
        "is_active": bool(u.is_active),
        "roles": sorted(u.roles),
    }

def _find_role(user_id: int, role: str) -> UserRole | None:
    return UserRole.query.filter_by(user_id=user_id, role=role).first()

# ---------- users ----------
@bp.get("/users")
@capability_required("users.manage")
def users():
    rows = User.query.order_by(User.username).all()
    return jsonify({"ok": True, "items": [_user_row(u) for u in rows]})

@bp.post("/users")
@capability_required("users.manage")
def create_user():
    data = payload()
    try:
        username = to_text(data.get("username"), "username")
        password = data.get("password") or ""
        email = to_text(data.get("email"), "email") or None
        full_name = to_text(data.get("full_name"), "full_name")
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    if not username or not isinstance(password, str) or not password:
        return jsonify({"ok": False, "error": "username_and_password_required"}), 400
    roles = data.get("roles") or []
    if not isinstance(roles, list) or any(r not in ROLES for r in roles):
        return jsonify({"ok": False, "error": "bad_role"}), 400
    u = User(username=username, email=email, full_name=full_name)
    u.set_password(password)
    for r in dict.fromkeys(roles):
        u.role_rows.append(UserRole(role=r, created_by=getattr(current_user, "id", None)))
    db.session.add(u)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"ok": False, "error": "username_taken"}), 409
    return jsonify({"ok": True, "item": _user_row(u)}), 201

@bp.post("/users/<int:user_id>/deactivate")
@capability_required("users.manage")
def deactivate_user(user_id: int):
    u = db.session.get(User, user_id)
    if not u:
        return jsonify({"ok": False, "error": "not_found"}), 404
    if u.id == getattr(current_user, "id", 0):
        return jsonify({"ok": False, "error": "cannot_deactivate_self"}), 400
    u.is_active = False
    db.session.commit()
    return jsonify({"ok": True, "item": _user_row(u)})

# ---------- roles ----------
@bp.post("/users/<int:user_id>/roles")
@capability_required("users.manage")
def assign_role(user_id: int):
    u = db.session.get(User, user_id)
    if not u:
        return jsonify({"ok": False, "error": "not_found"}), 404
    role = payload().get("role")
    if role not in ROLES:
        return jsonify({"ok": False, "error": "bad_role"}), 400
    if not _find_role(u.id, role):
        u.role_rows.append(UserRole(role=role, created_by=getattr(current_user, "id", None)))
        db.session.commit()
    return jsonify({"ok": True, "item": _user_row(u)})

@bp.delete("/users/<int:user_id>/roles/<role>")
@capability_required("users.manage")
def remove_role(user_id: int, role: str):
    u = db.session.get(User, user_id)
    if not u:
        return jsonify({"ok": False, "error": "not_found"}), 404
    row = _find_role(u.id, role)
    if row:
        u.role_rows.remove(row)
        db.session.commit()
    return jsonify({"ok": True, "item": _user_row(u)})
