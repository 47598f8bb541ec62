# -*- coding: utf-8 -*-

from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from ..extensions import db
from ..models.user import User
from ..utils import payload, to_text

auth_bp = Blueprint("auth", __name__)

@auth_bp.post("/login")
def login():
    data = payload()
    try:
        username = to_text(data.get("username"), "username")
        password = to_text(data.get("password"), "password")
    except ValueError:
        return jsonify({"ok": False, "error": "bad_credentials"}), 401
    u = db.session.query(User).filter_by(username=username).first()
    if not u or not u.is_active or not u.check_password(password):
        return jsonify({"ok": False, "error": "bad_credentials"}), 401
    login_user(u, remember=True)
    return jsonify({"ok": True, "user": _me(u)})

@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    return jsonify({"ok": True})

@auth_bp.get("/me")
@login_required
def me():
    return jsonify({"ok": True, "user": _me(current_user)})

def _me(u: User) -> dict:
    return {"id": u.id, "username": u.username, "name": u.display_name, "roles": sorted(u.roles)}
