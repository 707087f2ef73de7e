"""
ENS Service

Checks .eth domain availability against the ENS contracts:

- Base registrar ``available(uint256 labelhash)``
- Registry ``owner(bytes32 namehash)``; a non-zero owner means taken

The local network never touches a chain and answers from a fixed list of
taken names. Registration is simulated everywhere: the backend holds no
keys, so a real purchase has to be signed client-side.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from app.core.config import ZERO_ADDRESS, settings
from app.core.wallet import generate_transaction_hash, labelhash_bytes, namehash_bytes

logger = logging.getLogger("web3payroll.ens")

ENS_CONTRACTS: Dict[str, Dict[str, str]] = {
    "mainnet": {
        "ens_registry": "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e",
        "eth_registrar_controller": "0x253553366Da8546fC250F225fe3d25d0C782303b",
        "base_registrar": "0x57f1887a8BF19b14fC0dF6Fd9B2acc9Af147eA85",
        "public_resolver": "0x231b0Ee14048e9dCcD1d247744d114a4EB5E8E63",
    },
    "sepolia": {
        "ens_registry": "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e",
        "eth_registrar_controller": "0xFED6a969AaA60E4961FCD3EBF1A2e8913ac65B72",
        "base_registrar": "0x57f1887a8BF19b14fC0dF6Fd9B2acc9Af147eA85",
        "public_resolver": "0x8FADE66B79cC9f707aB26799354482EB93a5B7dD",
    },
    # Addresses of a default hardhat deployment
    "local": {
        "ens_registry": "0x5FbDB2315678afecb367f032d93F642f64180aa3",
        "eth_registrar_controller": "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512",
        "base_registrar": "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0",
        "public_resolver": "0xCf7Ed3AccA5a467e9e704C703E8D87F634fB0Fc9",
    },
}

BASE_REGISTRAR_ABI = [
    {
        "inputs": [{"internalType": "uint256", "name": "id", "type": "uint256"}],
        "name": "available",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    }
]

ENS_REGISTRY_ABI = [
    {
        "inputs": [{"internalType": "bytes32", "name": "node", "type": "bytes32"}],
        "name": "owner",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    }
]

SIMULATED_TAKEN_DOMAINS = frozenset({
    "ethereum", "vitalik", "coinbase", "binance", "test", "admin", "root",
})


@dataclass
class AvailabilityResult:
    """Outcome of an availability check."""
    available: bool
    on_chain: bool
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "on_chain": self.on_chain,
            "reason": self.reason,
        }


def _rpc_url(network: str) -> Optional[str]:
    return {
        "mainnet": settings.MAINNET_RPC_URL,
        "sepolia": settings.SEPOLIA_RPC_URL,
        "local": settings.LOCAL_RPC_URL,
    }.get(network)


class ENSService:
    """ENS availability checks and (simulated) registration for one network."""

    def __init__(self, network: Optional[str] = None):
        self.network = ""
        self.w3: Optional[AsyncWeb3] = None
        self.contracts: Dict[str, str] = {}
        self.base_registrar = None
        self.ens_registry = None
        self.switch_network(network or settings.ENS_NETWORK)

    def _create_provider(self, network: str) -> Optional[AsyncWeb3]:
        url = _rpc_url(network)
        if not url:
            return None
        try:
            return AsyncWeb3(AsyncHTTPProvider(
                url, request_kwargs={"timeout": settings.ENS_RPC_TIMEOUT_SECONDS}
            ))
        except Exception as e:
            logger.error(f"Failed to create provider for {network}: {e}")
            return None

    def _initialize_contracts(self) -> None:
        self.base_registrar = None
        self.ens_registry = None
        if self.w3 is None or not self.contracts:
            logger.warning("Provider or contracts not available, using simulation mode")
            return

        try:
            self.base_registrar = self.w3.eth.contract(
                address=Web3.to_checksum_address(self.contracts["base_registrar"]),
                abi=BASE_REGISTRAR_ABI,
            )
            self.ens_registry = self.w3.eth.contract(
                address=Web3.to_checksum_address(self.contracts["ens_registry"]),
                abi=ENS_REGISTRY_ABI,
            )
        except Exception as e:
            logger.error(f"Failed to initialize ENS contracts: {e}")
            self.base_registrar = None
            self.ens_registry = None

    def switch_network(self, network: str) -> bool:
        """
        Point the service at another network.

        Returns:
            False (leaving the service unchanged) for an unknown network
        """
        network = (network or "").lower()
        if network not in ENS_CONTRACTS:
            logger.error(f"Network {network} not available")
            return False

        self.network = network
        self.contracts = ENS_CONTRACTS[network]
        self.w3 = self._create_provider(network)
        self._initialize_contracts()
        logger.info(f"ENS service using {network} network")
        return True

    async def close(self) -> None:
        """Release the RPC provider's HTTP session."""
        if self.w3 is not None:
            await self.w3.provider.disconnect()

    def simulate_availability(self, label: str) -> AvailabilityResult:
        if label.lower() in SIMULATED_TAKEN_DOMAINS:
            return AvailabilityResult(False, False, "Domain is taken (simulated)")
        return AvailabilityResult(True, False, "Domain appears available (local simulation)")

    async def check_blockchain_availability(self, label: str) -> AvailabilityResult:
        """
        Ask the base registrar and the registry about ``<label>.eth``.

        ``on_chain`` is False whenever the chain could not be queried.
        """
        if self.base_registrar is None or self.ens_registry is None:
            return AvailabilityResult(False, False, "ENS contracts not available")

        label = label.lower()
        try:
            token_id = int.from_bytes(labelhash_bytes(label), "big")
            registrar_available = await self.base_registrar.functions.available(token_id).call()
            owner = await self.ens_registry.functions.owner(namehash_bytes(f"{label}.eth")).call()
        except Exception as e:
            logger.error(f"Blockchain availability check failed for {label}: {e}")
            return AvailabilityResult(False, False, "Unable to verify on blockchain")

        is_owned = (owner or ZERO_ADDRESS).lower() != ZERO_ADDRESS
        available = bool(registrar_available) and not is_owned
        logger.info(
            f"ENS check for {label}: registrar_available={registrar_available}, owner={owner}"
        )
        return AvailabilityResult(
            available,
            True,
            "Domain is available" if available else "Domain is already registered",
        )

    async def check_domain_availability(self, label: str) -> AvailabilityResult:
        """
        Availability of ``<label>.eth`` on the current network.

        Falls back to "available (simulation)" when the chain cannot be
        reached; any unexpected failure reports the domain as unavailable.
        """
        try:
            logger.info(f"Checking ENS availability for {label} on {self.network}")
            if self.network == "local":
                return self.simulate_availability(label)

            result = await self.check_blockchain_availability(label)
            if result.on_chain:
                return result
            return AvailabilityResult(
                True, False,
                "Domain appears available (blockchain check failed, using simulation)",
            )
        except Exception as e:
            logger.error(f"Domain availability check failed for {label}: {e}")
            return AvailabilityResult(False, False, "Error checking domain availability")

    async def get_registration_cost(self, label: str, duration: int = 365) -> Dict[str, Any]:
        """Fixed registration quote; the controller's rentPrice is not queried."""
        return {
            "cost": settings.ENS_REGISTRATION_COST_ETH,
            "duration": duration,
            "currency": "ETH",
        }

    async def register_domain_on_testnet(
        self,
        label: str,
        owner_address: str,
        duration: int = 365,
    ) -> Dict[str, Any]:
        """
        Simulate registering ``<label>.eth`` for ``owner_address``.

        Returns:
            Dict with ``success`` and either the simulated transaction or ``error``
        """
        domain = f"{label.lower()}.eth"
        logger.info(f"Registering {domain} for {owner_address} on {self.network}")

        if self.network == "local":
            return {
                "success": True,
                "transaction_hash": generate_transaction_hash(),
                "domain": domain,
                "owner": owner_address,
                "duration": duration,
                "network": "local-simulation",
                "cost": f"{settings.ENS_REGISTRATION_COST_ETH} ETH (simulated)",
            }

        if self.network == "sepolia":
            availability = await self.check_blockchain_availability(label)
            if not availability.available:
                return {
                    "success": False,
                    "error": f"Domain {domain} is not available: {availability.reason}",
                    "domain": domain,
                    "network": "sepolia",
                }
            return {
                "success": True,
                "transaction_hash": generate_transaction_hash(),
                "domain": domain,
                "owner": owner_address,
                "duration": duration,
                "network": "sepolia-simulation",
                "cost": f"{settings.ENS_REGISTRATION_COST_ETH} ETH (estimated)",
                "message": "Domain registration simulated - real registration requires wallet integration",
            }

        logger.error(f"ENS registration not implemented for network: {self.network}")
        return {
            "success": False,
            "error": f"ENS registration not implemented for network: {self.network}",
            "domain": domain,
        }


_ens_service: Optional[ENSService] = None


def get_ens_service() -> ENSService:
    """Shared ENS service for the configured network (FastAPI dependency)."""
    global _ens_service
    if _ens_service is None:
        _ens_service = ENSService()
    return _ens_service
