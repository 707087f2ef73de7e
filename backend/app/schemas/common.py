"""
Validators and small models shared by the request/response schemas.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import BaseModel

WALLET_PATTERN = r"^0x[a-fA-F0-9]{40}$"
TX_HASH_PATTERN = r"^0x[a-fA-F0-9]{64}$"
SUBDOMAIN_PATTERN = r"^[a-z0-9-]+$"


def parse_amount(value, minimum: Optional[str] = None, maximum: Optional[str] = None) -> str:
    """
    Validate a decimal amount given as a string or number.

    Returns:
        The amount as a string, as supplied when it was already a string

    Raises:
        ValueError: if the value is not numeric or falls outside the bounds
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("Amount must be numeric")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError("Amount must be numeric")
    if not amount.is_finite():
        raise ValueError("Amount must be numeric")
    if minimum is not None and amount < Decimal(minimum):
        raise ValueError(f"Amount must be at least {minimum}")
    if maximum is not None and amount > Decimal(maximum):
        raise ValueError(f"Amount must be at most {maximum}")
    return value.strip() if isinstance(value, str) else str(amount)


class MessageResponse(BaseModel):
    message: str


class TransactionResponse(BaseModel):
    success: bool = True
    transaction_hash: str
    message: str
