from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import SUBDOMAIN_PATTERN, WALLET_PATTERN
from app.schemas.employee import EmployeeResponse


class EnsRecordResponse(BaseModel):
    id: int
    subdomain: str
    full_domain: str
    owner: str
    resolver: str
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    transferred_at: Optional[datetime] = None
    transferred_by: Optional[str] = None

    class Config:
        from_attributes = True


class EnsRegisterRequest(BaseModel):
    subdomain: str = Field(..., min_length=3, max_length=63, pattern=SUBDOMAIN_PATTERN)
    employee_address: str = Field(..., pattern=WALLET_PATTERN)
    resolver_address: Optional[str] = Field(None, pattern=WALLET_PATTERN)

    @field_validator("employee_address")
    @classmethod
    def lowercase_wallet(cls, v: str) -> str:
        return v.lower()


class EnsRegisterResponse(BaseModel):
    success: bool = True
    transaction_hash: str
    domain: EnsRecordResponse
    message: str


class EnsResolveResponse(BaseModel):
    address: str
    domain: str
    resolver: str


class EnsTransferRequest(BaseModel):
    subdomain: str = Field(..., min_length=1, max_length=63)
    new_owner: str


class EnsSubdomainResponse(BaseModel):
    domain: EnsRecordResponse
    employee: Optional[EmployeeResponse] = None


class EnsAvailabilityResponse(BaseModel):
    available: bool
    subdomain: str
    full_domain: str


class EnsStats(BaseModel):
    total_domains: int
    employee_domains: int
    company_domains: int
    recent_registrations: int


class EnsDomainList(BaseModel):
    domains: List[EnsRecordResponse]
