from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ProcessPayrollRequest(BaseModel):
    employee_ids: List[int] = Field(..., min_length=1)


class ProcessPayrollResponse(BaseModel):
    success: bool = True
    transaction_hash: str
    message: str
    processed_count: int


class PaymentRecordResponse(BaseModel):
    id: int
    employee_id: int
    company_id: Optional[int] = None
    employee_name: Optional[str] = None
    wallet_address: str
    amount: str
    token: str
    transaction_hash: str
    paid_at: datetime
    processed_by: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentHistoryResponse(BaseModel):
    data: List[PaymentRecordResponse]
    total_pages: int
    current_page: int
    total: int


class PendingPayment(BaseModel):
    id: int
    name: str
    wallet_address: str
    salary_amount: str
    preferred_token: str
    ens_name: Optional[str] = None
    ens_domain: Optional[str] = None
    due_date: datetime
    is_pending: bool = True


class PayrollSummary(BaseModel):
    total_employees: int
    total_monthly_payroll: str
    pending_payments: int
    processed_payments: int
