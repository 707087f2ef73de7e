from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.common import SUBDOMAIN_PATTERN, WALLET_PATTERN, parse_amount
from app.services.payment_schedule import PaymentFrequency

EmploymentType = Literal["full-time", "part-time", "contractor"]
TokenSymbol = Literal["ETH", "USDC", "USDT", "DAI"]

SALARY_MIN = "0.001"
SALARY_MAX = "1000"


# ============ Nested groups ============

class AddressInfo(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class PersonalInfo(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = None
    address: Optional[AddressInfo] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class EmploymentDetails(BaseModel):
    start_date: Optional[datetime] = None
    position: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=1, max_length=100)
    employment_type: EmploymentType = "full-time"


class PayrollSettings(BaseModel):
    wallet_address: str = Field(..., pattern=WALLET_PATTERN)
    salary_amount: str
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    preferred_token: TokenSymbol = "ETH"

    @field_validator("salary_amount", mode="before")
    @classmethod
    def validate_salary(cls, v) -> str:
        return parse_amount(v, SALARY_MIN, SALARY_MAX)

    @field_validator("wallet_address")
    @classmethod
    def lowercase_wallet(cls, v: str) -> str:
        return v.lower()


class EnsDetails(BaseModel):
    subdomain: str = Field(..., min_length=3, max_length=63, pattern=SUBDOMAIN_PATTERN)
    full_domain: Optional[str] = None
    ens_node: Optional[str] = None
    resolver_address: Optional[str] = Field(None, pattern=WALLET_PATTERN)


class TaxInformation(BaseModel):
    tax_id: Optional[str] = None
    withholdings: Optional[str] = "0"
    jurisdiction: Optional[str] = None
    tax_exempt: bool = False

    @field_validator("withholdings", mode="before")
    @classmethod
    def validate_withholdings(cls, v):
        if v is None:
            return "0"
        return parse_amount(v, "0")


class BlockchainInfo(BaseModel):
    contract_address: Optional[str] = None
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[str] = None


# ============ Requests ============

class EmployeeCreate(BaseModel):
    personal_info: PersonalInfo
    employment_details: EmploymentDetails
    payroll_settings: PayrollSettings
    ens_details: EnsDetails
    tax_information: Optional[TaxInformation] = None
    blockchain_info: Optional[BlockchainInfo] = None
    company_id: Optional[int] = None


class PersonalInfoUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[AddressInfo] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class EmploymentDetailsUpdate(BaseModel):
    start_date: Optional[datetime] = None
    position: Optional[str] = Field(None, min_length=1, max_length=100)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    employment_type: Optional[EmploymentType] = None


class PayrollSettingsUpdate(BaseModel):
    wallet_address: Optional[str] = Field(None, pattern=WALLET_PATTERN)
    salary_amount: Optional[str] = None
    payment_frequency: Optional[PaymentFrequency] = None
    preferred_token: Optional[TokenSymbol] = None

    @field_validator("salary_amount", mode="before")
    @classmethod
    def validate_salary(cls, v):
        if v is None:
            return v
        return parse_amount(v, SALARY_MIN, SALARY_MAX)

    @field_validator("wallet_address")
    @classmethod
    def lowercase_wallet(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class EnsDetailsUpdate(BaseModel):
    subdomain: Optional[str] = Field(None, min_length=3, max_length=63, pattern=SUBDOMAIN_PATTERN)
    full_domain: Optional[str] = None
    ens_node: Optional[str] = None
    resolver_address: Optional[str] = Field(None, pattern=WALLET_PATTERN)


class TaxInformationUpdate(BaseModel):
    tax_id: Optional[str] = None
    withholdings: Optional[str] = None
    jurisdiction: Optional[str] = None
    tax_exempt: Optional[bool] = None

    @field_validator("withholdings", mode="before")
    @classmethod
    def validate_withholdings(cls, v):
        if v is None:
            return v
        return parse_amount(v, "0")


class EmployeeUpdate(BaseModel):
    personal_info: Optional[PersonalInfoUpdate] = None
    employment_details: Optional[EmploymentDetailsUpdate] = None
    payroll_settings: Optional[PayrollSettingsUpdate] = None
    ens_details: Optional[EnsDetailsUpdate] = None
    tax_information: Optional[TaxInformationUpdate] = None
    blockchain_info: Optional[BlockchainInfo] = None


class PaymentUpdate(BaseModel):
    timestamp: Optional[datetime] = Field(None, description="Payment time; defaults to now")


# ============ Responses ============

class PayrollSettingsResponse(BaseModel):
    wallet_address: str
    salary_amount: str
    payment_frequency: str
    preferred_token: str
    last_payment_at: Optional[datetime] = None


class EmploymentDetailsResponse(BaseModel):
    start_date: Optional[datetime] = None
    position: Optional[str] = None
    department: Optional[str] = None
    employment_type: str
    is_active: bool


class PersonalInfoResponse(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: AddressInfo


class EnsDetailsResponse(BaseModel):
    subdomain: Optional[str] = None
    full_domain: Optional[str] = None
    ens_node: Optional[str] = None
    resolver_address: Optional[str] = None


class TaxInformationResponse(BaseModel):
    tax_id: Optional[str] = None
    withholdings: str = "0"
    jurisdiction: Optional[str] = None
    tax_exempt: bool = False


class EmployeeResponse(BaseModel):
    id: int
    company_id: Optional[int] = None
    full_name: str
    ens_domain: Optional[str] = None
    personal_info: PersonalInfoResponse
    employment_details: EmploymentDetailsResponse
    payroll_settings: PayrollSettingsResponse
    ens_details: EnsDetailsResponse
    tax_information: TaxInformationResponse
    blockchain_info: BlockchainInfo
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    @classmethod
    def from_model(cls, employee) -> "EmployeeResponse":
        return cls(
            id=employee.id,
            company_id=employee.company_id,
            full_name=employee.full_name,
            ens_domain=employee.ens_domain,
            personal_info=PersonalInfoResponse(
                name=employee.name,
                email=employee.email,
                phone=employee.phone,
                address=AddressInfo(
                    street=employee.street,
                    city=employee.city,
                    state=employee.state,
                    zip_code=employee.zip_code,
                    country=employee.country,
                ),
            ),
            employment_details=EmploymentDetailsResponse(
                start_date=employee.start_date,
                position=employee.position,
                department=employee.department,
                employment_type=employee.employment_type or "full-time",
                is_active=bool(employee.is_active),
            ),
            payroll_settings=PayrollSettingsResponse(
                wallet_address=employee.wallet_address,
                salary_amount=employee.salary_amount,
                payment_frequency=employee.payment_frequency,
                preferred_token=employee.preferred_token,
                last_payment_at=employee.last_payment_at,
            ),
            ens_details=EnsDetailsResponse(
                subdomain=employee.ens_subdomain,
                full_domain=employee.ens_full_domain,
                ens_node=employee.ens_node,
                resolver_address=employee.ens_resolver_address,
            ),
            tax_information=TaxInformationResponse(
                tax_id=employee.tax_id,
                withholdings=employee.tax_withholdings or "0",
                jurisdiction=employee.tax_jurisdiction,
                tax_exempt=bool(employee.tax_exempt),
            ),
            blockchain_info=BlockchainInfo(
                contract_address=employee.contract_address,
                transaction_hash=employee.transaction_hash,
                block_number=employee.block_number,
                gas_used=employee.gas_used,
            ),
            created_at=employee.created_at,
            updated_at=employee.updated_at,
            created_by=employee.created_by,
            updated_by=employee.updated_by,
        )


class EmployeeMutationResponse(BaseModel):
    message: str
    employee: EmployeeResponse


class EmployeeListResponse(BaseModel):
    employees: List[EmployeeResponse]
    total_pages: int
    current_page: int
    total: int


class PendingPaymentsResponse(BaseModel):
    employees: List[EmployeeResponse]
    count: int


class DepartmentCount(BaseModel):
    department: Optional[str] = None
    count: int


class EmployeeStats(BaseModel):
    total_employees: int
    active_employees: int
    inactive_employees: int
    pending_payments: int
    department_breakdown: List[DepartmentCount]
