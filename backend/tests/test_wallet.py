"""
Tests for app/core/wallet.py - address, token and ENS hashing helpers.
"""
import pytest

from app.core.config import ZERO_ADDRESS
from app.core.wallet import (
    generate_transaction_hash,
    is_transaction_hash,
    is_valid_address,
    labelhash,
    namehash,
    normalize_address,
    subnode,
    token_address,
    token_symbol,
)


class TestAddresses:

    def test_valid_address(self):
        assert is_valid_address("0x" + "aB" * 20)

    @pytest.mark.parametrize("value", [
        None,
        "",
        "0x123",
        "1x" + "a" * 40,
        "0x" + "g" * 40,
        "0x" + "a" * 41,
    ])
    def test_invalid_address(self, value):
        assert not is_valid_address(value)

    def test_normalize_lowercases(self):
        assert normalize_address("0x" + "AB" * 20) == "0x" + "ab" * 20

    def test_normalize_rejects_garbage(self):
        with pytest.raises(ValueError):
            normalize_address("not-an-address")


class TestTransactionHashes:

    def test_generated_hash_shape(self):
        tx_hash = generate_transaction_hash()
        assert is_transaction_hash(tx_hash)
        assert tx_hash != generate_transaction_hash()

    def test_rejects_short_hash(self):
        assert not is_transaction_hash("0x1234")


class TestTokens:

    def test_known_symbols(self):
        assert token_symbol(ZERO_ADDRESS) == "ETH"
        assert token_symbol("0x6b175474e89094c44da98b954eedeac495271d0f") == "DAI"

    def test_unknown_token_symbol(self):
        assert token_symbol("0x" + "9" * 40) == "TOKEN"

    def test_token_address_defaults_to_eth(self):
        assert token_address("usdt") == "0xdAC17F958D2ee523a2206206994597C13D831ec7"
        assert token_address("DOGE") == ZERO_ADDRESS


class TestEnsHashing:

    def test_namehash_of_empty_name(self):
        assert namehash("") == "0x" + "00" * 32

    def test_namehash_eth(self):
        # EIP-137 reference value
        assert namehash("eth") == "0x93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae"

    def test_labelhash_eth(self):
        assert labelhash("eth") == "0x4f5b812789fc606be1b3b16908db13fc7a9adf7ca72641f84d75b47069d3d7f0"

    def test_namehash_is_case_insensitive(self):
        assert namehash("Alice.Company.ETH") == namehash("alice.company.eth")

    def test_subnode_matches_namehash(self):
        assert subnode(namehash("company.eth"), "alice") == namehash("alice.company.eth")
