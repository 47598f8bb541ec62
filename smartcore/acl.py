# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Iterable

# -- who may do what --
CAPABILITIES: dict[str, frozenset[str]] = {
    "payroll.view":       frozenset({"Admin"}),
    "payroll.manage":     frozenset({"Admin"}),
    "payroll.generate":   frozenset({"Admin"}),
    "salary.manage":      frozenset({"Admin"}),
    "advance.manage":     frozenset({"Admin"}),
    "expense.create":     frozenset({"Admin", "Engineer"}),
    "expense.view":       frozenset({"Admin", "Engineer"}),
    "expense.approve":    frozenset({"Admin"}),
    "expense.delete_any": frozenset({"Admin"}),
    "task.view":          frozenset({"Admin", "Engineer"}),
    "task.edit":          frozenset({"Admin", "Engineer"}),
    "task.edit_any":      frozenset({"Admin"}),
    "task.delete":        frozenset({"Admin"}),
    "vendor.view":        frozenset({"Admin", "Engineer"}),
    "vendor.manage":      frozenset({"Admin"}),
    "reports.view":       frozenset({"Admin"}),
    "users.manage":       frozenset({"Admin"}),
}


def can(roles: Iterable[str], action: str) -> bool:
    """Allow/deny for a set of roles; unknown actions are denied."""
    allowed = CAPABILITIES.get(action)
    if not allowed:
        return False
    return bool(allowed.intersection(roles or ()))


def roles_of(user) -> set[str]:
    if not getattr(user, "is_authenticated", False):
        return set()
    if not getattr(user, "is_active", True):
        return set()
    return set(getattr(user, "roles", ()) or ())


def user_can(user, action: str) -> bool:
    return can(roles_of(user), action)


def is_admin(user) -> bool:
    return "Admin" in roles_of(user)
