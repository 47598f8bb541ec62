"""
Bring the database schema up to date without touching data.

Creates tables declared in the models that do not exist yet.

Run:
  python scripts/ensure_schema.py
"""

from __future__ import annotations

import sys
from pathlib import Path

from sqlalchemy import inspect

# make sure the project root is importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

print("[ensure] loading app...")
from smartcore import create_app  # type: ignore
from smartcore.extensions import db  # type: ignore


def _tables() -> set[str]:
    return set(inspect(db.engine).get_table_names())


def main() -> int:
    app = create_app()
    with app.app_context():
        uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
        print(f"[ensure] SQLALCHEMY_DATABASE_URI = {uri}")

        before = _tables()
        print(f"[ensure] tables before: {len(before)}")

        # register all models on the metadata
        from smartcore import models  # noqa: F401

        db.create_all()

        after = _tables()
        created = sorted(after - before)
        if created:
            print(f"[ensure] created tables: {', '.join(created)}")
        else:
            print("[ensure] no new tables needed.")

        required = ["employee_salaries", "advances", "payroll", "expense", "vendors", "tasks", "task_history"]
        missing = [t for t in required if t not in after]
        if missing:
            print(f"[ensure] WARNING missing tables: {', '.join(missing)}")
            return 1
        print("[ensure] Done.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
