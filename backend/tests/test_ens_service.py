"""
Tests for app/services/ens_service.py - ENS availability and registration.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.config import ZERO_ADDRESS
from app.services.ens_service import ENSService

TAKEN_OWNER = "0x5555555555555555555555555555555555555555"


def mock_contract(function_name: str, result=None, side_effect=None):
    """Contract whose ``functions.<name>(...).call()`` resolves to ``result``."""
    call = AsyncMock(return_value=result, side_effect=side_effect)
    contract = MagicMock()
    getattr(contract.functions, function_name).return_value.call = call
    return contract


@pytest.fixture
def sepolia_service():
    service = ENSService("sepolia")
    service.base_registrar = mock_contract("available", True)
    service.ens_registry = mock_contract("owner", ZERO_ADDRESS)
    return service


class TestNetworks:

    def test_switch_to_unknown_network(self):
        service = ENSService("local")

        assert service.switch_network("goerli") is False
        assert service.network == "local"

    def test_switch_network(self):
        service = ENSService("local")

        assert service.switch_network("mainnet") is True
        assert service.network == "mainnet"
        assert service.contracts["base_registrar"].startswith("0x57f1")


class TestLocalSimulation:

    @pytest.mark.asyncio
    async def test_reserved_name_is_taken(self):
        result = await ENSService("local").check_domain_availability("vitalik")

        assert result.available is False
        assert result.on_chain is False

    @pytest.mark.asyncio
    async def test_other_name_is_available(self):
        result = await ENSService("local").check_domain_availability("acmepayroll")

        assert result.available is True

    @pytest.mark.asyncio
    async def test_local_registration_is_simulated(self):
        result = await ENSService("local").register_domain_on_testnet("acme", TAKEN_OWNER)

        assert result["success"] is True
        assert result["domain"] == "acme.eth"
        assert result["network"] == "local-simulation"
        assert result["transaction_hash"].startswith("0x")


class TestBlockchainChecks:

    @pytest.mark.asyncio
    async def test_available_on_chain(self, sepolia_service):
        result = await sepolia_service.check_domain_availability("acme")

        assert result.available is True
        assert result.on_chain is True

    @pytest.mark.asyncio
    async def test_owned_domain_is_taken(self, sepolia_service):
        sepolia_service.ens_registry = mock_contract("owner", TAKEN_OWNER)

        result = await sepolia_service.check_domain_availability("acme")

        assert result.available is False
        assert result.reason == "Domain is already registered"

    @pytest.mark.asyncio
    async def test_registrar_unavailable(self, sepolia_service):
        sepolia_service.base_registrar = mock_contract("available", False)

        result = await sepolia_service.check_blockchain_availability("acme")

        assert result.available is False
        assert result.on_chain is True

    @pytest.mark.asyncio
    async def test_rpc_failure_falls_back_to_available(self, sepolia_service):
        sepolia_service.base_registrar = mock_contract(
            "available", side_effect=ConnectionError("rpc down")
        )

        result = await sepolia_service.check_domain_availability("acme")

        assert result.available is True
        assert result.on_chain is False
        assert "simulation" in result.reason

    @pytest.mark.asyncio
    async def test_missing_contracts(self):
        service = ENSService("sepolia")
        service.base_registrar = None

        result = await service.check_blockchain_availability("acme")

        assert result.available is False
        assert result.reason == "ENS contracts not available"


class TestRegistration:

    @pytest.mark.asyncio
    async def test_sepolia_registration_of_free_name(self, sepolia_service):
        result = await sepolia_service.register_domain_on_testnet("acme", TAKEN_OWNER)

        assert result["success"] is True
        assert result["network"] == "sepolia-simulation"

    @pytest.mark.asyncio
    async def test_sepolia_registration_of_taken_name(self, sepolia_service):
        sepolia_service.ens_registry = mock_contract("owner", TAKEN_OWNER)

        result = await sepolia_service.register_domain_on_testnet("acme", TAKEN_OWNER)

        assert result["success"] is False
        assert "not available" in result["error"]

    @pytest.mark.asyncio
    async def test_mainnet_registration_not_implemented(self):
        result = await ENSService("mainnet").register_domain_on_testnet("acme", TAKEN_OWNER)

        assert result["success"] is False
        assert "not implemented" in result["error"]

    @pytest.mark.asyncio
    async def test_registration_cost(self):
        cost = await ENSService("local").get_registration_cost("acme")

        assert cost == {"cost": "0.005", "duration": 365, "currency": "ETH"}


class TestClose:

    @pytest.mark.asyncio
    async def test_close_disconnects_provider(self):
        service = ENSService("local")
        service.w3 = MagicMock()
        service.w3.provider.disconnect = AsyncMock()

        await service.close()

        service.w3.provider.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_without_provider(self):
        service = ENSService("local")
        service.w3 = None

        await service.close()
