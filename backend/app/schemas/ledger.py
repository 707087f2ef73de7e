from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.config import ZERO_ADDRESS
from app.schemas.common import WALLET_PATTERN, parse_amount
from app.services.payment_schedule import PaymentFrequency


class EtherAmount(BaseModel):
    """Base for requests carrying an ``amount`` in ether units."""
    amount: str

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v) -> str:
        return parse_amount(v, "0")


class LedgerDeposit(EtherAmount):
    token: str = Field(ZERO_ADDRESS, pattern=WALLET_PATTERN)


class LedgerWithdraw(EtherAmount):
    token: str = Field(ZERO_ADDRESS, pattern=WALLET_PATTERN)


class LedgerBonusCreate(EtherAmount):
    recipient: str = Field(..., pattern=WALLET_PATTERN)
    reason: str = Field(..., min_length=1, max_length=500)
    token: str = Field(ZERO_ADDRESS, pattern=WALLET_PATTERN)


class TokenAuthorization(BaseModel):
    token: str = Field(..., pattern=WALLET_PATTERN)
    authorized: bool


class LedgerEmployeeUpdate(BaseModel):
    salary: str = Field(..., description="Salary per period in ether units")
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY

    @field_validator("salary", mode="before")
    @classmethod
    def validate_salary(cls, v) -> str:
        return parse_amount(v, "0")


class LedgerEmployeeCreate(LedgerEmployeeUpdate):
    wallet_address: str = Field(..., pattern=WALLET_PATTERN)
    subdomain: str = Field(..., min_length=1, max_length=63)
    token: str = Field(ZERO_ADDRESS, pattern=WALLET_PATTERN)
    position: str = ""
    department: str = ""


class LedgerBatchPayment(BaseModel):
    wallets: List[str] = Field(..., min_length=1)


class LedgerEmployeeResponse(BaseModel):
    wallet_address: str
    salary_amount: str
    ens_subdomain: str
    ens_node: str
    frequency: str
    preferred_token: str
    position: str
    department: str
    is_active: bool
    last_payment_at: Optional[datetime] = None
    total_paid: str
    payment_due: bool = False


class LedgerBonusResponse(BaseModel):
    id: int
    recipient: str
    amount: str
    reason: str
    token: str
    distributed: bool
    created_at: Optional[datetime] = None
    distributed_at: Optional[datetime] = None


class LedgerStatus(BaseModel):
    owner: str
    company_domain: str
    company_node: str
    ens_registry: str
    public_resolver: str
    paused: bool
    total_employees: int
    total_bonuses: int
    balances: Dict[str, str]


class LedgerEventResponse(BaseModel):
    name: str
    args: Dict[str, Any]
    timestamp: Optional[datetime] = None
