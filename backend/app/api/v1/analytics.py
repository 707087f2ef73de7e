from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db
from app.schemas.analytics import (
    DepartmentAnalyticsResponse,
    EmployeeCostsResponse,
    PaymentTrendsResponse,
    PayrollSummaryAnalytics,
)
from app.services.analytics_service import analytics_service

router = APIRouter()


@router.get("/payroll-summary", response_model=PayrollSummaryAnalytics)
async def payroll_summary(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await analytics_service.payroll_summary(db)


@router.get("/employee-costs", response_model=EmployeeCostsResponse)
async def employee_costs(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Monthly and annual cost of each active employee, most expensive first."""
    return await analytics_service.employee_costs(db)


@router.get("/payment-trends", response_model=PaymentTrendsResponse)
async def payment_trends(
    period: Literal["daily", "weekly", "monthly"] = "monthly",
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await analytics_service.payment_trends(db, period)


@router.get("/departments", response_model=DepartmentAnalyticsResponse)
async def departments(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return await analytics_service.departments(db)
