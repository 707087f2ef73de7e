from typing import List, Literal, Optional

from pydantic import BaseModel

TrendPeriod = Literal["daily", "weekly", "monthly"]


class DepartmentBreakdown(BaseModel):
    department: Optional[str] = None
    count: int
    total_salary: str


class MonthlyTrend(BaseModel):
    month: str
    amount: str
    payments: int


class TokenUsage(BaseModel):
    token: str
    count: int
    percentage: float


class PayrollSummaryAnalytics(BaseModel):
    total_employees: int
    active_employees: int
    total_payroll: str
    monthly_payroll: str
    pending_payments: int
    completed_payments: int
    total_bonuses_distributed: str
    bonuses_this_month: str
    department_breakdown: List[DepartmentBreakdown]
    payment_trends: List[MonthlyTrend]
    token_usage: List[TokenUsage]


class EmployeeCost(BaseModel):
    id: int
    name: str
    department: Optional[str] = None
    salary_amount: str
    payment_frequency: str
    monthly_cost: str
    annual_cost: str


class EmployeeCostsResponse(BaseModel):
    employees: List[EmployeeCost]
    total_monthly_cost: str
    total_annual_cost: str
    average_monthly_cost: str
    average_annual_cost: str


class TrendBucket(BaseModel):
    period: str
    total_amount: str
    payment_count: int
    average_amount: str
    eth_amount: str
    token_amount: str


class TrendSummary(BaseModel):
    total_amount: str
    total_payments: int
    average_payment: str


class PaymentTrendsResponse(BaseModel):
    period: TrendPeriod
    trends: List[TrendBucket]
    summary: TrendSummary


class DepartmentEmployee(BaseModel):
    id: int
    name: str
    salary_amount: str


class DepartmentAnalytics(BaseModel):
    department: Optional[str] = None
    employee_count: int
    total_salary: str
    average_salary: str
    percentage: float
    employees: List[DepartmentEmployee]


class DepartmentAnalyticsResponse(BaseModel):
    departments: List[DepartmentAnalytics]
    total_employees: int
