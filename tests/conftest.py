"""
Pytest fixtures for the SmartCore test suite.

Every test gets a fresh in-memory SQLite database inside a pushed app
context; the Flask test client shares that context and its session.
"""

from datetime import date
from decimal import Decimal

import pytest

from smartcore import create_app
from smartcore.config import Config
from smartcore.extensions import db
from smartcore.models import Advance, EmployeeSalary, User, UserRole

CRON_TOKEN = "cron-secret"


class _TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    PAYROLL_CRON_TOKEN = CRON_TOKEN
    LOG_LEVEL = "DEBUG"


@pytest.fixture
def app():
    app = create_app(_TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(username, *roles, password="pw"):
        u = User(username=username, full_name=username.upper())
        u.set_password(password)
        for r in roles:
            u.role_rows.append(UserRole(role=r))
        db.session.add(u)
        db.session.commit()
        return u
    return _make


@pytest.fixture
def add_salary(app):
    def _add(employee_id, amount, effective_from, effective_to=None):
        s = EmployeeSalary(
            employee_id=employee_id,
            monthly_salary=Decimal(str(amount)),
            effective_from=effective_from,
            effective_to=effective_to,
        )
        db.session.add(s)
        db.session.commit()
        return s
    return _add


@pytest.fixture
def add_advance(app):
    def _add(employee_id, amount, advance_date):
        a = Advance(employee_id=employee_id, amount=Decimal(str(amount)), advance_date=advance_date)
        db.session.add(a)
        db.session.commit()
        return a
    return _add


@pytest.fixture
def login(client):
    def _login(username, password="pw"):
        resp = client.post("/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return client
    return _login


@pytest.fixture
def admin(make_user):
    return make_user("admin", "Admin")


@pytest.fixture
def engineer(make_user):
    return make_user("engineer", "Engineer")


@pytest.fixture
def admin_client(login, admin):
    return login("admin")


@pytest.fixture
def employees(make_user, add_salary, add_advance):
    """E1: 3000, no advances. E2: 2500 with a 400 advance in February 2024."""
    e1 = make_user("e1", "Engineer")
    e2 = make_user("e2", "Engineer")
    add_salary(e1.id, 3000, date(2024, 1, 1))
    add_salary(e2.id, 2500, date(2024, 1, 1))
    add_advance(e2.id, 400, date(2024, 2, 10))
    return e1, e2
