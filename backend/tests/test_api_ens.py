"""
Tests for app/api/v1/ens.py - company ENS subdomain registry.
"""
import pytest

from app.core.wallet import namehash
from conftest import EMPLOYEE_WALLET, OTHER_WALLET, employee_payload

RESOLVER = "0x4976fb03c32e5b8cfe2b6ccb31c09ba78ebaba41"


async def register(client, subdomain="dave", wallet=EMPLOYEE_WALLET):
    return await client.post(
        "/api/ens/register", json={"subdomain": subdomain, "employee_address": wallet}
    )


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_mirrors_on_employee(self, client):
        created = await client.post("/api/employees/", json=employee_payload())
        employee_id = created.json()["employee"]["id"]

        response = await register(client)

        assert response.status_code == 200
        domain = response.json()["domain"]
        assert domain["full_domain"] == "dave.company.eth"
        assert domain["owner"] == EMPLOYEE_WALLET
        assert domain["resolver"] == RESOLVER

        ens = (await client.get(f"/api/employees/{employee_id}")).json()["ens_details"]
        assert ens["subdomain"] == "dave"
        assert ens["ens_node"] == namehash("dave.company.eth")

    @pytest.mark.asyncio
    async def test_register_unknown_employee(self, client):
        response = await register(client)

        assert response.status_code == 404
        assert response.json() == {"error": "Employee not found"}

    @pytest.mark.asyncio
    async def test_register_taken_subdomain(self, client):
        await client.post("/api/employees/", json=employee_payload())
        await register(client)

        response = await register(client)

        assert response.status_code == 400
        assert response.json() == {"error": "Subdomain already exists"}

    @pytest.mark.asyncio
    async def test_parent_label_is_reserved(self, client):
        await client.post("/api/employees/", json=employee_payload())

        response = await register(client, subdomain="company")

        assert response.status_code == 400


class TestLookups:

    @pytest.mark.asyncio
    async def test_company_domains_include_parent(self, client):
        domains = (await client.get("/api/ens/company-domains")).json()

        assert [d["full_domain"] for d in domains] == ["company.eth"]

    @pytest.mark.asyncio
    async def test_resolve_by_label_or_domain(self, client):
        await client.post("/api/employees/", json=employee_payload())
        await register(client)

        by_label = (await client.get("/api/ens/resolve/dave")).json()
        by_domain = (await client.get("/api/ens/resolve/DAVE.company.eth")).json()

        assert by_label == by_domain == {
            "address": EMPLOYEE_WALLET,
            "domain": "dave.company.eth",
            "resolver": RESOLVER,
        }

    @pytest.mark.asyncio
    async def test_resolve_unknown(self, client):
        response = await client.get("/api/ens/resolve/nobody.company.eth")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_subdomain_details(self, client):
        await client.post("/api/employees/", json=employee_payload())
        await register(client)

        body = (await client.get("/api/ens/subdomain/dave")).json()

        assert body["domain"]["subdomain"] == "dave"
        assert body["employee"]["payroll_settings"]["wallet_address"] == EMPLOYEE_WALLET

    @pytest.mark.asyncio
    async def test_subdomain_without_employee(self, client):
        body = (await client.get("/api/ens/subdomain/company")).json()

        assert body["employee"] is None


class TestTransfer:

    @pytest.mark.asyncio
    async def test_transfer(self, client):
        await client.post("/api/employees/", json=employee_payload())
        await register(client)

        response = await client.post(
            "/api/ens/transfer", json={"subdomain": "dave", "new_owner": OTHER_WALLET}
        )

        assert response.status_code == 200
        record = (await client.get("/api/ens/subdomain/dave")).json()["domain"]
        assert record["owner"] == OTHER_WALLET
        assert record["transferred_at"] is not None

    @pytest.mark.asyncio
    async def test_transfer_invalid_owner(self, client):
        await client.post("/api/employees/", json=employee_payload())
        await register(client)

        response = await client.post("/api/ens/transfer", json={"subdomain": "dave", "new_owner": "0x12"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid new owner address"}

    @pytest.mark.asyncio
    async def test_transfer_unknown(self, client):
        response = await client.post("/api/ens/transfer", json={"subdomain": "ghost", "new_owner": OTHER_WALLET})

        assert response.status_code == 404


class TestAvailabilityAndStats:

    @pytest.mark.asyncio
    async def test_available(self, client):
        body = (await client.get("/api/ens/check/newbie")).json()

        assert body == {"available": True, "subdomain": "newbie", "full_domain": "newbie.company.eth"}

    @pytest.mark.asyncio
    async def test_taken(self, client):
        body = (await client.get("/api/ens/check/company")).json()

        assert body["available"] is False

    @pytest.mark.parametrize(
        "subdomain,error",
        [
            ("Bad_Name", "Invalid subdomain format"),
            ("ab", "Subdomain must be between 3 and 63 characters"),
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid(self, client, subdomain, error):
        response = await client.get(f"/api/ens/check/{subdomain}")

        assert response.status_code == 400
        assert response.json() == {"available": False, "error": error}

    @pytest.mark.asyncio
    async def test_stats(self, client):
        await client.post("/api/employees/", json=employee_payload())
        await register(client)

        stats = (await client.get("/api/ens/stats/overview")).json()

        assert stats == {
            "total_domains": 2,
            "employee_domains": 1,
            "company_domains": 1,
            "recent_registrations": 2,
        }
