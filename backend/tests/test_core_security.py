"""
Tests for app/core/security.py - JWTs and wallet signatures.
"""
import re
from datetime import datetime, timedelta

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from jose import JWTError

from app.core.security import (
    build_signin_message,
    create_access_token,
    decode_access_token,
    parse_signin_message,
    verify_wallet_signature,
)


def sign(account, message: str) -> str:
    signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
    return "0x" + bytes(signed.signature).hex()


class TestAccessTokens:

    def test_round_trip_claims(self):
        token = create_access_token("0x" + "a" * 40, role="employee")

        payload = decode_access_token(token)

        assert payload["sub"] == "0x" + "a" * 40
        assert payload["role"] == "employee"

    def test_expired_token(self, expired_jwt_token):
        with pytest.raises(JWTError):
            decode_access_token(expired_jwt_token)

    def test_tampered_token(self, valid_jwt_token):
        with pytest.raises(JWTError):
            decode_access_token(valid_jwt_token[:-2] + "xx")


class TestSigninMessage:

    def test_message_embeds_wallet_and_time(self):
        issued = datetime(2024, 5, 1, 10, 30, 15, 123)

        message = build_signin_message("0x" + "AB" * 20, issued)
        wallet, issued_at = parse_signin_message(message)

        assert wallet == "0x" + "ab" * 20
        assert issued_at == datetime(2024, 5, 1, 10, 30, 15)

    def test_offset_issue_time_is_normalised_to_utc(self):
        message = re.sub(
            r"Issued At: \S+", "Issued At: 2024-05-01T12:30:15+02:00", build_signin_message("0x" + "ab" * 20)
        )

        _, issued_at = parse_signin_message(message)

        assert issued_at == datetime(2024, 5, 1, 10, 30, 15)
        assert issued_at.tzinfo is None

    def test_garbage_message(self):
        assert parse_signin_message("hello") == (None, None)


class TestWalletSignature:

    def test_valid_signature(self):
        account = Account.create()
        message = build_signin_message(account.address)

        assert verify_wallet_signature(account.address, message, sign(account, message))

    def test_signature_from_other_wallet(self):
        account, other = Account.create(), Account.create()
        message = build_signin_message(account.address)

        assert not verify_wallet_signature(account.address, message, sign(other, message))

    def test_signature_over_other_message(self):
        account = Account.create()
        message = build_signin_message(account.address)

        signature = sign(account, message + "!")

        assert not verify_wallet_signature(account.address, message, signature)

    def test_malformed_signature(self):
        account = Account.create()
        assert not verify_wallet_signature(account.address, "msg", "0x1234")
