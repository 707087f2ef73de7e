"""
Tests for app/api/v1/employees.py - Employee API endpoints.
"""
from datetime import datetime, timedelta

import pytest

from app.core.wallet import namehash
from conftest import EMPLOYEE_WALLET, OTHER_WALLET, OWNER_WALLET, employee_payload


async def create_employee(client, **kwargs) -> dict:
    response = await client.post("/api/employees/", json=employee_payload(**kwargs))
    assert response.status_code == 201, response.text
    return response.json()["employee"]


class TestCreateEmployee:

    @pytest.mark.asyncio
    async def test_create_employee(self, client):
        response = await client.post("/api/employees/", json=employee_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Employee created successfully"
        employee = body["employee"]
        assert employee["full_name"] == "Alice Doe"
        assert employee["payroll_settings"]["wallet_address"] == EMPLOYEE_WALLET
        assert employee["payroll_settings"]["last_payment_at"] is None
        assert employee["personal_info"]["address"]["city"] == "Berlin"
        assert employee["employment_details"]["is_active"] is True
        assert employee["created_by"] == OWNER_WALLET

    @pytest.mark.asyncio
    async def test_ens_fields_are_derived(self, client):
        employee = await create_employee(client)

        ens = employee["ens_details"]
        assert ens["full_domain"] == "alice.company.eth"
        assert ens["ens_node"] == namehash("alice.company.eth")
        assert ens["resolver_address"] == "0x4976fb03c32e5b8cfe2b6ccb31c09ba78ebaba41"
        assert employee["ens_domain"] == "alice.company.eth"

    @pytest.mark.asyncio
    async def test_wallet_and_email_are_lowercased(self, client):
        employee = await create_employee(
            client, wallet="0x" + "AB" * 20, email="Alice@Example.COM"
        )

        assert employee["payroll_settings"]["wallet_address"] == "0x" + "ab" * 20
        assert employee["personal_info"]["email"] == "alice@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_wallet(self, client):
        await create_employee(client)

        response = await client.post(
            "/api/employees/", json=employee_payload(email="other@example.com", subdomain="other")
        )

        assert response.status_code == 400
        assert "already exists" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client):
        await create_employee(client)

        response = await client.post(
            "/api/employees/", json=employee_payload(wallet=OTHER_WALLET, subdomain="other")
        )

        assert response.status_code == 400

    @pytest.mark.parametrize("salary", ["0", "0.0001", "1000.5", "abc"])
    @pytest.mark.asyncio
    async def test_salary_out_of_range(self, client, salary):
        response = await client.post("/api/employees/", json=employee_payload(salary=salary))

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    @pytest.mark.asyncio
    async def test_invalid_wallet(self, client):
        response = await client.post("/api/employees/", json=employee_payload(wallet="0x123"))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_subdomain(self, client):
        response = await client.post("/api/employees/", json=employee_payload(subdomain="Bad_Name"))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_company(self, client):
        response = await client.post("/api/employees/", json=employee_payload(company_id=42))

        assert response.status_code == 404
        assert response.json() == {"error": "Company not found"}


class TestReadEmployees:

    @pytest.mark.asyncio
    async def test_list_paginates_newest_first(self, client):
        await create_employee(client)
        await create_employee(client, wallet=OTHER_WALLET, email="bob@example.com", subdomain="bob")

        response = await client.get("/api/employees/", params={"limit": 1})

        body = response.json()
        assert body["total"] == 2
        assert body["total_pages"] == 2
        assert body["current_page"] == 1
        assert len(body["employees"]) == 1
        assert body["employees"][0]["personal_info"]["email"] == "bob@example.com"

    @pytest.mark.asyncio
    async def test_list_filters(self, client):
        await create_employee(client)
        bob = await create_employee(
            client, wallet=OTHER_WALLET, email="bob@example.com", subdomain="bob", department="Sales"
        )
        await client.patch(f"/api/employees/{bob['id']}/deactivate")

        by_department = (await client.get("/api/employees/", params={"department": "Sales"})).json()
        active_only = (await client.get("/api/employees/", params={"active": "true"})).json()

        assert by_department["total"] == 1
        assert active_only["total"] == 1
        assert active_only["employees"][0]["personal_info"]["name"] == "Alice Doe"

    @pytest.mark.asyncio
    async def test_get_by_id(self, client):
        employee = await create_employee(client)

        response = await client.get(f"/api/employees/{employee['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == employee["id"]

    @pytest.mark.asyncio
    async def test_get_by_wallet_is_case_insensitive(self, client):
        await create_employee(client, wallet="0x" + "ab" * 20)

        response = await client.get("/api/employees/wallet/0x" + "AB" * 20)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_get_by_ens(self, client):
        await create_employee(client)

        assert (await client.get("/api/employees/ens/alice")).status_code == 200
        assert (await client.get("/api/employees/ens/nobody")).status_code == 404


class TestUpdateEmployee:

    @pytest.mark.asyncio
    async def test_partial_update(self, client):
        employee = await create_employee(client)

        response = await client.put(
            f"/api/employees/{employee['id']}",
            json={
                "payroll_settings": {"salary_amount": "3.75", "payment_frequency": "WEEKLY"},
                "employment_details": {"position": "Lead"},
            },
        )

        assert response.status_code == 200
        updated = response.json()["employee"]
        assert updated["payroll_settings"]["salary_amount"] == "3.75"
        assert updated["payroll_settings"]["payment_frequency"] == "WEEKLY"
        assert updated["employment_details"]["position"] == "Lead"
        assert updated["employment_details"]["department"] == "Engineering"

    @pytest.mark.asyncio
    async def test_new_subdomain_rederives_domain(self, client):
        employee = await create_employee(client)

        response = await client.put(
            f"/api/employees/{employee['id']}", json={"ens_details": {"subdomain": "alicia"}}
        )

        ens = response.json()["employee"]["ens_details"]
        assert ens["full_domain"] == "alicia.company.eth"
        assert ens["ens_node"] == namehash("alicia.company.eth")

    @pytest.mark.asyncio
    async def test_update_to_taken_wallet(self, client):
        await create_employee(client)
        bob = await create_employee(client, wallet=OTHER_WALLET, email="bob@example.com", subdomain="bob")

        response = await client.put(
            f"/api/employees/{bob['id']}",
            json={"payroll_settings": {"wallet_address": EMPLOYEE_WALLET}},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_missing(self, client):
        response = await client.put("/api/employees/999", json={})

        assert response.status_code == 404


class TestActivationAndPayments:

    @pytest.mark.asyncio
    async def test_deactivate_and_activate(self, client):
        employee = await create_employee(client)

        off = await client.patch(f"/api/employees/{employee['id']}/deactivate")
        on = await client.patch(f"/api/employees/{employee['id']}/activate")

        assert off.json()["employee"]["employment_details"]["is_active"] is False
        assert on.json()["employee"]["employment_details"]["is_active"] is True

    @pytest.mark.asyncio
    async def test_record_payment_now(self, client):
        employee = await create_employee(client)

        response = await client.patch(f"/api/employees/{employee['id']}/payment")

        assert response.status_code == 200
        assert response.json()["employee"]["payroll_settings"]["last_payment_at"] is not None

    @pytest.mark.asyncio
    async def test_record_payment_with_timestamp(self, client):
        employee = await create_employee(client)

        response = await client.patch(
            f"/api/employees/{employee['id']}/payment",
            json={"timestamp": "2024-03-01T12:00:00+02:00"},
        )

        paid = response.json()["employee"]["payroll_settings"]["last_payment_at"]
        assert paid.startswith("2024-03-01T10:00:00")

    @pytest.mark.asyncio
    async def test_pending_payments(self, client):
        alice = await create_employee(client)
        await create_employee(client, wallet=OTHER_WALLET, email="bob@example.com", subdomain="bob")
        await client.patch(f"/api/employees/{alice['id']}/payment")

        response = await client.get("/api/employees/pending-payments/list")

        body = response.json()
        assert body["count"] == 1
        assert body["employees"][0]["personal_info"]["email"] == "bob@example.com"

    @pytest.mark.asyncio
    async def test_overdue_payment_is_pending(self, client):
        alice = await create_employee(client, frequency="WEEKLY")
        last_week = (datetime.utcnow() - timedelta(days=8)).isoformat()
        await client.patch(f"/api/employees/{alice['id']}/payment", json={"timestamp": last_week})

        body = (await client.get("/api/employees/pending-payments/list")).json()

        assert body["count"] == 1


class TestStatsAndDelete:

    @pytest.mark.asyncio
    async def test_stats(self, client):
        await create_employee(client)
        bob = await create_employee(
            client, wallet=OTHER_WALLET, email="bob@example.com", subdomain="bob", department="Sales"
        )
        await client.patch(f"/api/employees/{bob['id']}/deactivate")

        stats = (await client.get("/api/employees/stats/overview")).json()

        assert stats["total_employees"] == 2
        assert stats["active_employees"] == 1
        assert stats["inactive_employees"] == 1
        assert stats["pending_payments"] == 1
        assert stats["department_breakdown"] == [{"department": "Engineering", "count": 1}]

    @pytest.mark.asyncio
    async def test_delete(self, client):
        employee = await create_employee(client)

        response = await client.delete(f"/api/employees/{employee['id']}")

        assert response.json() == {"message": "Employee deleted successfully"}
        assert (await client.get(f"/api/employees/{employee['id']}")).status_code == 404
