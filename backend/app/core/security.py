import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from jose import jwt

from app.core.config import settings
from app.services.payment_schedule import as_naive_utc

logger = logging.getLogger("web3payroll.security")

SIGNIN_MESSAGE_TEMPLATE = (
    "Sign in to {project}\n"
    "Wallet: {wallet}\n"
    "Issued At: {issued_at}"
)
_ISSUED_AT_RE = re.compile(r"^Issued At: (?P<issued_at>\S+)$", re.MULTILINE)
_WALLET_RE = re.compile(r"^Wallet: (?P<wallet>0x[a-fA-F0-9]{40})$", re.MULTILINE)


def create_access_token(
    subject: str | Any,
    role: str = "admin",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The subject of the token (the wallet address)
        role: Role claim carried alongside the subject
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {"exp": expire, "sub": str(subject), "role": role}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a token. Raises ``jose.JWTError`` when invalid or expired."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def build_signin_message(wallet: str, issued_at: Optional[datetime] = None) -> str:
    """Message a wallet signs (personal_sign) to obtain a bearer token."""
    issued_at = issued_at or datetime.utcnow()
    return SIGNIN_MESSAGE_TEMPLATE.format(
        project=settings.PROJECT_NAME,
        wallet=wallet.lower(),
        issued_at=issued_at.replace(microsecond=0).isoformat() + "Z",
    )


def parse_signin_message(message: str) -> tuple[Optional[str], Optional[datetime]]:
    """Extract the wallet and issue time embedded in a sign-in message."""
    wallet_match = _WALLET_RE.search(message or "")
    issued_match = _ISSUED_AT_RE.search(message or "")

    wallet = wallet_match.group("wallet").lower() if wallet_match else None
    issued_at = None
    if issued_match:
        try:
            issued_at = as_naive_utc(
                datetime.fromisoformat(issued_match.group("issued_at").rstrip("Z"))
            )
        except ValueError:
            issued_at = None
    return wallet, issued_at


def verify_wallet_signature(wallet: str, message: str, signature: str) -> bool:
    """
    Check that ``signature`` is ``wallet``'s personal_sign over ``message``.

    Returns False for malformed signatures instead of raising.
    """
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as e:
        # eth_account/eth_keys raise several unrelated exception types on bad input
        logger.debug(f"Signature recovery failed for {wallet}: {e}")
        return False
    return recovered.lower() == wallet.lower()
