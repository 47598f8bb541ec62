from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from smartcore.models import PayrollRecord

from conftest import CRON_TOKEN

FEB_BODY = {"start": "2024-02-01", "end": "2024-02-29"}


class TestGenerateEndpoint:

    def test_requires_login_or_token(self, client, employees):
        assert client.post("/payroll/generate", json=FEB_BODY).status_code == 401
        bad = client.post("/payroll/generate", json=FEB_BODY, headers={"X-Cron-Token": "nope"})
        assert bad.status_code == 401

    def test_engineer_forbidden(self, login, employees):
        c = login("e1")
        assert c.post("/payroll/generate", json=FEB_BODY).status_code == 403

    def test_cron_token(self, client, employees):
        resp = client.post("/payroll/generate", json=FEB_BODY, headers={"X-Cron-Token": CRON_TOKEN})
        assert resp.status_code == 200
        assert resp.get_json() == {
            "message": "Payroll records generated successfully",
            "created": 2,
            "period": {"start": "2024-02-01", "end": "2024-02-29"},
        }

    def test_idempotent(self, admin_client, employees):
        admin_client.post("/payroll/generate", json=FEB_BODY)
        again = admin_client.post("/payroll/generate", json=FEB_BODY)
        assert again.status_code == 200
        assert again.get_json()["created"] == 0
        assert PayrollRecord.query.count() == 2

    def test_without_body_uses_previous_month(self, admin_client):
        resp = admin_client.post("/payroll/generate")
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "No active salaries found", "created": 0}

    def test_data_access_error(self, admin_client, employees, monkeypatch):
        def boom(*a, **k):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        monkeypatch.setattr("smartcore.modules.payroll.generate_for_period", boom)
        resp = admin_client.post("/payroll/generate", json=FEB_BODY)
        assert resp.status_code == 500
        body = resp.get_json()
        assert set(body) == {"error"}
        assert "database is locked" in body["error"]

    def test_bad_period(self, admin_client):
        resp = admin_client.post("/payroll/generate", json={"start": "2024-02-01"})
        assert resp.status_code == 400
        assert "error" in resp.get_json()


class TestPayrollCrud:

    def test_list_and_balance(self, admin_client, employees):
        e1, e2 = employees
        admin_client.post("/payroll/generate", json=FEB_BODY)
        items = admin_client.get("/payroll/").get_json()["items"]
        assert len(items) == 2
        rec = next(i for i in items if i["employee_id"] == e2.id)
        assert rec["net_pay"] == 2100.0
        assert rec["deductions"] == 400.0

        bal = admin_client.get(f"/payroll/{rec['id']}/balance").get_json()
        assert bal["balance_due"] == 1700.0

        only = admin_client.get(f"/payroll/?employee_id={e1.id}").get_json()["items"]
        assert [i["employee_id"] for i in only] == [e1.id]

    def test_manual_create_prefills_salary(self, admin_client, employees):
        e1, _ = employees
        resp = admin_client.post("/payroll/", json={
            "employee_id": e1.id,
            "pay_period_start": "2024-03-01",
            "pay_period_end": "2024-03-31",
            "bonuses": "150",
            "deductions": "50",
        })
        assert resp.status_code == 201
        item = resp.get_json()["item"]
        assert item["base_salary"] == 3000.0
        assert item["net_pay"] == 3100.0
        assert item["status"] == "draft"

    def test_manual_create_needs_salary_when_none_applies(self, admin_client, make_user):
        e = make_user("nosalary")
        resp = admin_client.post("/payroll/", json={
            "employee_id": e.id, "pay_period_start": "2024-03-01", "pay_period_end": "2024-03-31",
        })
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "salary_required"

        resp = admin_client.post("/payroll/", json={
            "employee_id": e.id, "pay_period_start": "2024-03-01", "pay_period_end": "2024-03-31",
            "base_salary": "1234.50",
        })
        assert resp.status_code == 201
        assert resp.get_json()["item"]["net_pay"] == 1234.5

    def test_duplicate_period_rejected(self, admin_client, employees):
        e1, _ = employees
        admin_client.post("/payroll/generate", json=FEB_BODY)
        resp = admin_client.post("/payroll/", json={
            "employee_id": e1.id, "pay_period_start": "2024-02-01", "pay_period_end": "2024-02-29",
        })
        assert resp.status_code == 409

    def test_update_recomputes_net_pay(self, admin_client, employees):
        admin_client.post("/payroll/generate", json=FEB_BODY)
        rec = admin_client.get("/payroll/").get_json()["items"][0]
        resp = admin_client.put(f"/payroll/{rec['id']}", json={"bonuses": "100"})
        assert resp.status_code == 200
        item = resp.get_json()["item"]
        assert item["net_pay"] == item["base_salary"] + 100 - item["deductions"]

    def test_delete(self, admin_client, employees):
        admin_client.post("/payroll/generate", json=FEB_BODY)
        rec = admin_client.get("/payroll/").get_json()["items"][0]
        assert admin_client.delete(f"/payroll/{rec['id']}").status_code == 200
        assert admin_client.get(f"/payroll/{rec['id']}").status_code == 404

    def test_salary_lookup(self, admin_client, employees):
        e1, _ = employees
        resp = admin_client.get(f"/payroll/salary-lookup?employee_id={e1.id}&period_start=2024-02-01")
        assert resp.get_json()["monthly_salary"] == 3000.0
        resp = admin_client.get(f"/payroll/salary-lookup?employee_id={e1.id}&period_start=2023-02-01")
        assert resp.get_json()["found"] is False


class TestStatusTransitions:

    def _first(self, c):
        c.post("/payroll/generate", json=FEB_BODY)
        return c.get("/payroll/").get_json()["items"][0]["id"]

    def test_forward_only(self, admin_client, admin, employees):
        rid = self._first(admin_client)
        resp = admin_client.post(f"/payroll/{rid}/status", json={"status": "approved"})
        assert resp.status_code == 200
        item = resp.get_json()["item"]
        assert item["status"] == "approved"
        assert item["approved_by"] == admin.id
        assert item["approved_at"]

        back = admin_client.post(f"/payroll/{rid}/status", json={"status": "draft"})
        assert back.status_code == 409

        paid = admin_client.post(f"/payroll/{rid}/status", json={"status": "paid"}).get_json()["item"]
        assert paid["status"] == "paid"
        assert paid["payment_date"]

    @pytest.mark.parametrize("body", [{"status": "void"}, {}, {"status": ["paid"]}])
    def test_unknown_status_is_a_validation_error(self, admin_client, employees, body):
        rid = self._first(admin_client)
        resp = admin_client.post(f"/payroll/{rid}/status", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "bad_status"
        resp = admin_client.put(f"/payroll/{rid}", json={"status": body.get("status", "")})
        assert resp.status_code == 400
        assert admin_client.get(f"/payroll/{rid}").get_json()["item"]["status"] == "draft"

    def test_create_with_status(self, admin_client, admin, employees):
        e1, _ = employees
        body = {"employee_id": e1.id, "pay_period_start": "2024-03-01", "pay_period_end": "2024-03-31"}
        resp = admin_client.post("/payroll/", json={**body, "status": "void"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "bad_status"

        resp = admin_client.post("/payroll/", json={**body, "status": "approved"})
        assert resp.status_code == 201
        item = resp.get_json()["item"]
        assert item["status"] == "approved"
        assert item["approved_by"] == admin.id

    def test_regression_via_update_conflicts(self, admin_client, employees):
        rid = self._first(admin_client)
        admin_client.post(f"/payroll/{rid}/status", json={"status": "paid"})
        assert admin_client.put(f"/payroll/{rid}", json={"status": "approved"}).status_code == 409

    def test_paid_keeps_given_payment_date(self, admin_client, employees):
        rid = self._first(admin_client)
        admin_client.put(f"/payroll/{rid}", json={"payment_date": "2024-03-05"})
        item = admin_client.post(f"/payroll/{rid}/status", json={"status": "paid"}).get_json()["item"]
        assert item["payment_date"] == date(2024, 3, 5).isoformat()
