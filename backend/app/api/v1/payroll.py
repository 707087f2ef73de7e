"""
Company payroll: payment history, due payments and (simulated) processing.
All routes are scoped to the company owned by the ``x-wallet-address`` caller.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_company, get_db, require_wallet
from app.api.helpers import disable_caching, get_employee_or_404, paginate
from app.core.rate_limiter import RateLimits, limiter
from app.core.wallet import generate_transaction_hash
from app.models.company import Company
from app.models.employee import Employee
from app.models.payment import PaymentRecord
from app.schemas.common import TransactionResponse
from app.schemas.payroll import (
    PaymentHistoryResponse,
    PaymentRecordResponse,
    PayrollSummary,
    PendingPayment,
    ProcessPayrollRequest,
    ProcessPayrollResponse,
)
from app.services.payroll_service import pay_employees
from app.services.payment_schedule import (
    as_naive_utc,
    format_amount,
    is_payment_due,
    monthly_equivalent,
    next_payment_due,
)

router = APIRouter()
logger = logging.getLogger("web3payroll.payroll")


@router.get("/history", response_model=PaymentHistoryResponse)
async def payment_history(
    response: Response,
    employee_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Payments of the company, newest first."""
    disable_caching(response)

    query = select(PaymentRecord).where(PaymentRecord.company_id == company.id)
    if employee_id is not None:
        query = query.where(PaymentRecord.employee_id == employee_id)
    if start_date and end_date:
        query = query.where(
            PaymentRecord.paid_at >= as_naive_utc(start_date),
            PaymentRecord.paid_at <= as_naive_utc(end_date),
        )
    query = query.order_by(PaymentRecord.paid_at.desc(), PaymentRecord.id.desc())

    records, total, total_pages = await paginate(db, query, page, limit)
    return PaymentHistoryResponse(
        data=[PaymentRecordResponse.model_validate(r) for r in records],
        total_pages=total_pages,
        current_page=page,
        total=total,
    )


@router.get("/pending", response_model=List[PendingPayment])
async def pending_payments(
    response: Response,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Active company employees whose payment is due."""
    disable_caching(response)

    result = await db.execute(
        select(Employee)
        .where(Employee.company_id == company.id, Employee.is_active.is_(True))
        .order_by(Employee.id)
    )
    now = datetime.utcnow()
    return [
        PendingPayment(
            id=e.id,
            name=e.name,
            wallet_address=e.wallet_address,
            salary_amount=e.salary_amount,
            preferred_token=e.preferred_token,
            ens_name=e.ens_subdomain,
            ens_domain=e.ens_domain,
            due_date=next_payment_due(e.last_payment_at, e.payment_frequency, now),
        )
        for e in result.scalars().all()
        if is_payment_due(e.last_payment_at, e.payment_frequency, now)
    ]


@router.post("/process", response_model=ProcessPayrollResponse)
@limiter.limit(RateLimits.PAYROLL_PROCESS)
async def process_payroll(
    request: Request,
    payroll: ProcessPayrollRequest,
    wallet: str = Depends(require_wallet),
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """
    Pay a batch of company employees under one transaction hash.

    Nothing is recorded unless every id belongs to an active employee of
    the company.
    """
    ids = list(dict.fromkeys(payroll.employee_ids))
    result = await db.execute(
        select(Employee).where(Employee.company_id == company.id, Employee.id.in_(ids))
    )
    employees = {e.id: e for e in result.scalars().all()}

    missing = [i for i in ids if i not in employees]
    if missing:
        raise HTTPException(
            status_code=404,
            detail={"error": "Employees not found", "missing_ids": missing},
        )
    inactive = [i for i in ids if not employees[i].is_active]
    if inactive:
        raise HTTPException(
            status_code=400,
            detail={"error": "Some employees are not active", "inactive_ids": inactive},
        )

    tx_hash = generate_transaction_hash()
    await pay_employees(db, [employees[i] for i in ids], company, tx_hash, wallet)

    logger.info(f"Processed payroll for {len(ids)} employees of company {company.id} in {tx_hash}")
    return ProcessPayrollResponse(
        transaction_hash=tx_hash,
        message=f"Payroll processed for {len(ids)} employees",
        processed_count=len(ids),
    )


@router.post("/process/{employee_id}", response_model=TransactionResponse)
async def process_individual_payment(
    employee_id: int,
    wallet: str = Depends(require_wallet),
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    employee = await get_employee_or_404(db, employee_id, company_id=company.id)
    if not employee.is_active:
        raise HTTPException(status_code=400, detail="Employee is not active")

    tx_hash = generate_transaction_hash()
    await pay_employees(db, [employee], company, tx_hash, wallet)

    return TransactionResponse(
        transaction_hash=tx_hash,
        message=f"Payment processed for {employee.name}",
    )


@router.get("/summary", response_model=PayrollSummary)
async def payroll_summary(
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Headcount, monthly payroll of active staff, due and processed payment counts."""
    result = await db.execute(select(Employee).where(Employee.company_id == company.id))
    employees = result.scalars().all()
    active = [e for e in employees if e.is_active]

    now = datetime.utcnow()
    monthly_total = sum(
        (monthly_equivalent(e.salary_amount, e.payment_frequency) for e in active),
        Decimal("0"),
    )
    processed = (
        await db.execute(
            select(func.count(PaymentRecord.id)).where(PaymentRecord.company_id == company.id)
        )
    ).scalar() or 0

    return PayrollSummary(
        total_employees=len(employees),
        total_monthly_payroll=format_amount(monthly_total),
        pending_payments=sum(
            1 for e in active if is_payment_due(e.last_payment_at, e.payment_frequency, now)
        ),
        processed_payments=processed,
    )
