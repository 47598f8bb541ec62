# -*- coding: utf-8 -*-
"""
Full reset of the SQLite database with a small seed: one Admin, one
Engineer, a salary history and an advance for the Engineer.

Run from the project root:
  python scripts/recreate_db.py
"""

from __future__ import annotations
import sys, traceback
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional
from sqlalchemy import text

# --- project path ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

print(f"[recreate] ROOT={ROOT}")
if not (ROOT / "smartcore" / "__init__.py").exists():
    raise SystemExit("[recreate] error: smartcore/__init__.py not found next to scripts/")

print("[recreate] importing app…")
from smartcore import create_app  # type: ignore
from smartcore.extensions import db  # type: ignore
from smartcore.models import Advance, EmployeeSalary, User, UserRole, Vendor  # type: ignore


def _db_path_from_uri(uri: str) -> Optional[Path]:
    if uri.startswith("sqlite:///"):
        return Path(uri.replace("sqlite:///", "")).resolve()
    return None


def _cnt(table: str) -> int:
    return int(db.session.execute(text(f'SELECT COUNT(*) FROM "{table}"')).scalar() or 0)


def _user(username: str, password: str, full_name: str, *roles: str) -> User:
    u = User(username=username, full_name=full_name)
    u.set_password(password)
    for r in roles:
        u.role_rows.append(UserRole(role=r))
    return u


def main() -> int:
    print("[recreate] create_app()…")
    app = create_app()
    with app.app_context():
        uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
        print(f"[recreate] SQLALCHEMY_DATABASE_URI = {uri}")

        db_path = _db_path_from_uri(uri)
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            if db_path.exists():
                print(f"[recreate] removing database file: {db_path}")
                db_path.unlink()
            else:
                print(f"[recreate] database file does not exist yet: {db_path}")
        else:
            print("[recreate] not sqlite, dropping tables instead")
            db.drop_all()

        print("[recreate] creating tables from models…")
        db.create_all()

        # --- users ---
        admin = _user("admin", "admin", "Administrator", "Admin")
        engineer = _user("engineer", "engineer", "Field Engineer", "Engineer")
        db.session.add_all([admin, engineer])
        db.session.commit()
        print(f"[recreate] user rows={_cnt('user')}  -> admin id={admin.id}, engineer id={engineer.id}")

        # --- salary history and an advance ---
        db.session.add_all([
            EmployeeSalary(employee_id=engineer.id, monthly_salary=Decimal("2500.00"),
                           effective_from=date(2024, 1, 1), effective_to=date(2024, 6, 30),
                           created_by=admin.id),
            EmployeeSalary(employee_id=engineer.id, monthly_salary=Decimal("2800.00"),
                           effective_from=date(2024, 7, 1), created_by=admin.id),
            Advance(employee_id=engineer.id, advance_date=date.today().replace(day=1),
                    amount=Decimal("300.00"), notes="seed", created_by=admin.id),
        ])
        db.session.commit()
        print(f"[recreate] employee_salaries rows={_cnt('employee_salaries')}, advances rows={_cnt('advances')}")

        # --- vendors ---
        db.session.add_all([
            Vendor(name="Tech Solutions Inc", contact_info="support@techsolutions.example"),
            Vendor(name="ServiceMax Pro"),
        ])
        db.session.commit()
        print(f"[recreate] vendors rows={_cnt('vendors')}")

        print("\n[recreate] Done.")
        print("Logins:")
        print("  admin    / admin")
        print("  engineer / engineer")
        if db_path:
            print(f"\nDatabase file: {db_path}")
        return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception:
        print("\n[recreate] ERROR:")
        traceback.print_exc()
        sys.exit(1)
