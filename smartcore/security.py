# -*- coding: utf-8 -*-
from functools import wraps
from flask import jsonify
from flask_login import current_user

from .acl import user_can

def capability_required(action: str):
    """
    Not logged in -> 401.
    Roles do not grant ``action`` -> 403.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({"ok": False, "error": "unauthorized"}), 401
            if not user_can(current_user, action):
                return jsonify({"ok": False, "error": "forbidden"}), 403
            return f(*args, **kwargs)
        return wrapper
    return decorator
