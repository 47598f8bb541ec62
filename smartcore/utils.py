# -*- coding: utf-8 -*-
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from flask import request

# Numeric(12, 2)
MONEY_LIMIT = Decimal("1e10")


def payload() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def to_date(x, field: str = "date") -> date:
    if isinstance(x, datetime):
        return x.date()
    if isinstance(x, date):
        return x
    if not isinstance(x, str):
        raise ValueError(f"bad_{field}")
    try:
        return date.fromisoformat(x.strip())
    except ValueError:
        raise ValueError(f"bad_{field}") from None


def opt_date(x, field: str = "date") -> date | None:
    if x in (None, ""):
        return None
    return to_date(x, field)


def to_money(x, field: str = "amount") -> Decimal:
    """Non-negative decimal with two places, within Numeric(12,2)."""
    if isinstance(x, bool) or not isinstance(x, (str, int, float, Decimal)):
        raise ValueError(f"bad_{field}")
    try:
        v = Decimal(str(x).strip())
        if not v.is_finite() or v < 0 or v >= MONEY_LIMIT:
            raise ValueError(f"bad_{field}")
        return v.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValueError(f"bad_{field}") from None


def to_text(x, field: str, default: str = "") -> str:
    """Stripped string; JSON numbers, lists and objects are rejected."""
    if x is None:
        return default
    if not isinstance(x, str):
        raise ValueError(f"bad_{field}")
    return x.strip() or default


def to_int(x, field: str = "id") -> int:
    try:
        v = int(x)
    except (TypeError, ValueError):
        raise ValueError(f"bad_{field}") from None
    if v <= 0:
        raise ValueError(f"bad_{field}")
    return v


def money_out(v) -> float:
    return float(v or 0)


def iso(v) -> str | None:
    return v.isoformat() if v is not None else None
