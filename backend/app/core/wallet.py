"""
Wallet, token and ENS hashing helpers shared by the routers and services.
"""

import re
import secrets
from typing import Dict

from web3 import Web3

from app.core.config import ZERO_ADDRESS

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_TX_HASH_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")
_EMPTY_NODE = b"\x00" * 32

# Tokens the payroll accepts out of the box (mainnet addresses)
KNOWN_TOKENS: Dict[str, str] = {
    "ETH": ZERO_ADDRESS,
    "USDC": "0xA0b86a33E6e527e1F8A4E84F57FB1e8A84eB8aEd",
    "USDT": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
    "DAI": "0x6B175474E89094C44Da98b954EedeAC495271d0F",
}
_SYMBOL_BY_ADDRESS = {address.lower(): symbol for symbol, address in KNOWN_TOKENS.items()}


def is_valid_address(value) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def normalize_address(value: str) -> str:
    """Lowercase an address after checking its shape."""
    if not is_valid_address(value):
        raise ValueError(f"Invalid wallet address: {value!r}")
    return value.lower()


def is_transaction_hash(value) -> bool:
    return isinstance(value, str) and bool(_TX_HASH_RE.match(value))


def generate_transaction_hash() -> str:
    """
    Hash standing in for a submitted transaction.

    The backend never signs or broadcasts anything; settlement happens
    client-side against the PayrollManager contract.
    """
    return "0x" + secrets.token_hex(32)


def token_symbol(address: str) -> str:
    return _SYMBOL_BY_ADDRESS.get((address or "").lower(), "TOKEN")


def token_address(symbol: str) -> str:
    return KNOWN_TOKENS.get((symbol or "").upper(), ZERO_ADDRESS)


def labelhash_bytes(label: str) -> bytes:
    return bytes(Web3.keccak(text=label.lower()))


def namehash_bytes(name: str) -> bytes:
    """EIP-137 namehash of a dotted ENS name."""
    node = _EMPTY_NODE
    if name:
        for label in reversed(name.lower().split(".")):
            node = bytes(Web3.keccak(node + labelhash_bytes(label)))
    return node


def labelhash(label: str) -> str:
    return "0x" + labelhash_bytes(label).hex()


def namehash(name: str) -> str:
    return "0x" + namehash_bytes(name).hex()


def subnode(parent_node: str, label: str) -> str:
    """Node of ``label`` directly under ``parent_node`` (both hex)."""
    parent = bytes.fromhex(parent_node[2:] if parent_node.startswith("0x") else parent_node)
    return "0x" + bytes(Web3.keccak(parent + labelhash_bytes(label))).hex()
