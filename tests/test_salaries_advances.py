from smartcore.models import Advance, EmployeeSalary


class TestSalaries:

    def test_crud(self, admin_client, make_user):
        e = make_user("e")
        resp = admin_client.post("/salaries/", json={
            "employee_id": e.id, "monthly_salary": "1000", "effective_from": "2024-01-01",
            "effective_to": "2024-06-30",
        })
        assert resp.status_code == 201
        sid = resp.get_json()["item"]["id"]
        admin_client.post("/salaries/", json={
            "employee_id": e.id, "monthly_salary": "1200", "effective_from": "2024-07-01",
        })

        items = admin_client.get(f"/salaries/?employee_id={e.id}").get_json()["items"]
        assert [i["monthly_salary"] for i in items] == [1200.0, 1000.0]

        upd = admin_client.put(f"/salaries/{sid}", json={"monthly_salary": "1100"})
        assert upd.get_json()["item"]["monthly_salary"] == 1100.0

        assert admin_client.delete(f"/salaries/{sid}").status_code == 200
        assert EmployeeSalary.query.count() == 1

    def test_validation(self, admin_client, make_user):
        e = make_user("e")
        base = {"employee_id": e.id, "monthly_salary": "1000", "effective_from": "2024-05-01"}
        assert admin_client.post("/salaries/", json={**base, "monthly_salary": "-1"}).get_json()["error"] == "bad_monthly_salary"
        assert admin_client.post("/salaries/", json={**base, "effective_from": "May"}).get_json()["error"] == "bad_effective_from"
        resp = admin_client.post("/salaries/", json={**base, "effective_to": "2024-04-30"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "bad_effective_to"

    def test_admin_only(self, login, engineer):
        c = login("engineer")
        assert c.get("/salaries/").status_code == 403


class TestAdvances:

    def test_crud_and_filters(self, admin_client, admin, make_user):
        e = make_user("e")
        for d, amt in (("2024-01-31", "10"), ("2024-02-01", "20"), ("2024-02-29", "30")):
            r = admin_client.post("/advances/", json={"employee_id": e.id, "advance_date": d, "amount": amt})
            assert r.status_code == 201
        assert r.get_json()["item"]["created_by"] == admin.id

        feb = admin_client.get(f"/advances/?employee_id={e.id}&start=2024-02-01&end=2024-02-29").get_json()["items"]
        assert [i["amount"] for i in feb] == [30.0, 20.0]

        aid = feb[0]["id"]
        assert admin_client.put(f"/advances/{aid}", json={"amount": "35.5"}).get_json()["item"]["amount"] == 35.5
        assert admin_client.put(f"/advances/{aid}", json={"amount": "x"}).status_code == 400
        assert admin_client.delete(f"/advances/{aid}").status_code == 200
        assert Advance.query.count() == 2

    def test_missing(self, admin_client):
        assert admin_client.delete("/advances/999").status_code == 404


class TestMoneyAndDateInput:

    def test_oversized_amount_is_a_validation_error(self, admin_client, make_user):
        e = make_user("e")
        resp = admin_client.post("/advances/", json={"employee_id": e.id, "advance_date": "2024-02-01", "amount": "1e30"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "bad_amount"
        resp = admin_client.post("/salaries/", json={
            "employee_id": e.id, "monthly_salary": "1e30", "effective_from": "2024-01-01",
        })
        assert resp.get_json()["error"] == "bad_monthly_salary"
        assert Advance.query.count() == 0
        assert EmployeeSalary.query.count() == 0

    def test_trailing_garbage_in_date(self, admin_client, make_user):
        e = make_user("e")
        resp = admin_client.post("/advances/", json={"employee_id": e.id, "advance_date": "2024-02-01xyz", "amount": "5"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "bad_advance_date"

    def test_non_string_notes(self, admin_client, make_user):
        e = make_user("e")
        resp = admin_client.post("/advances/", json={
            "employee_id": e.id, "advance_date": "2024-02-01", "amount": "5", "notes": {"x": 1},
        })
        assert resp.get_json()["error"] == "bad_notes"
