from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import WALLET_PATTERN, parse_amount

COMPANY_DOMAIN_PATTERN = r"^[a-z0-9]+$"


class CompanyRegisterRequest(BaseModel):
    company_name: str = Field(..., min_length=2, max_length=100)
    company_domain: str = Field(..., min_length=3, max_length=50, pattern=COMPANY_DOMAIN_PATTERN)

    @field_validator("company_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class CompanyData(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    ens_domain: str = Field(..., min_length=3, max_length=255)
    ens_node: Optional[str] = None
    owner_wallet: str = Field(..., pattern=WALLET_PATTERN)


class CreateAfterEnsRequest(BaseModel):
    company_data: Optional[CompanyData] = None
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None


class CompanyResponse(BaseModel):
    id: int
    name: str
    ens_domain: str
    ens_node: Optional[str] = None
    owner_wallet: str
    ens_transaction_hash: Optional[str] = None
    ens_block_number: Optional[int] = None
    ens_gas_used: Optional[int] = None
    ens_registration_confirmed: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CompanyStatusResponse(BaseModel):
    has_company: bool
    company: Optional[CompanyResponse] = None


class CompanyRegisterResponse(BaseModel):
    success: bool = True
    registration_info: Dict[str, Any]
    company_data: CompanyData


class CompanyCreatedResponse(BaseModel):
    success: bool = True
    company: CompanyResponse
    message: str


class CompanyEmployeeCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    wallet_address: str = Field(..., pattern=WALLET_PATTERN)
    salary_amount: str
    payment_token: Literal["ETH", "USDC", "USDT", "DAI"] = "ETH"
    ens_name: Optional[str] = Field(None, max_length=63)

    @field_validator("salary_amount", mode="before")
    @classmethod
    def validate_salary(cls, v) -> str:
        return parse_amount(v, "0")

    @field_validator("wallet_address")
    @classmethod
    def lowercase_wallet(cls, v: str) -> str:
        return v.lower()

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class CompanyEmployeeResponse(BaseModel):
    id: int
    name: str
    wallet_address: str
    salary_amount: str
    payment_token: str
    ens_name: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, employee) -> "CompanyEmployeeResponse":
        return cls(
            id=employee.id,
            name=employee.name,
            wallet_address=employee.wallet_address,
            salary_amount=employee.salary_amount,
            payment_token=employee.preferred_token,
            ens_name=employee.ens_subdomain,
            is_active=bool(employee.is_active),
            created_at=employee.created_at,
        )


class DomainCheckResponse(BaseModel):
    available: bool
    domain: str
    source: Literal["database", "blockchain", "fallback"]
    reason: Optional[str] = None
    on_chain: Optional[bool] = None
