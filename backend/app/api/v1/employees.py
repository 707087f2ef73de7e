"""
Employee records: CRUD, activation, payment bookkeeping and statistics.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db
from app.api.helpers import get_employee_by_wallet, get_employee_or_404, paginate
from app.core.config import settings
from app.core.wallet import namehash
from app.models.company import Company
from app.models.employee import Employee
from app.schemas.common import MessageResponse
from app.schemas.employee import (
    DepartmentCount,
    EmployeeCreate,
    EmployeeListResponse,
    EmployeeMutationResponse,
    EmployeeResponse,
    EmployeeStats,
    EmployeeUpdate,
    PaymentUpdate,
    PendingPaymentsResponse,
)
from app.services.payment_schedule import as_naive_utc, is_payment_due

router = APIRouter()
logger = logging.getLogger("web3payroll.employees")

DUPLICATE_EMPLOYEE = "Employee with this wallet address or email already exists"

# Request group -> {request field: model column}
_FIELD_MAP = {
    "personal_info": {"name": "name", "email": "email", "phone": "phone"},
    "employment_details": {
        "start_date": "start_date",
        "position": "position",
        "department": "department",
        "employment_type": "employment_type",
    },
    "payroll_settings": {
        "wallet_address": "wallet_address",
        "salary_amount": "salary_amount",
        "payment_frequency": "payment_frequency",
        "preferred_token": "preferred_token",
    },
    "ens_details": {
        "subdomain": "ens_subdomain",
        "full_domain": "ens_full_domain",
        "ens_node": "ens_node",
        "resolver_address": "ens_resolver_address",
    },
    "tax_information": {
        "tax_id": "tax_id",
        "withholdings": "tax_withholdings",
        "jurisdiction": "tax_jurisdiction",
        "tax_exempt": "tax_exempt",
    },
    "blockchain_info": {
        "contract_address": "contract_address",
        "transaction_hash": "transaction_hash",
        "block_number": "block_number",
        "gas_used": "gas_used",
    },
}
_ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")


def _apply_groups(employee: Employee, data: dict) -> None:
    """Copy nested request groups onto the flat model; absent keys are left alone."""
    for group, fields in _FIELD_MAP.items():
        values = data.get(group)
        if not values:
            continue
        for key, column in fields.items():
            if key in values:
                value = values[key]
                if hasattr(value, "value"):
                    value = value.value
                elif isinstance(value, datetime):
                    value = as_naive_utc(value)
                setattr(employee, column, value)
        address = values.get("address") if group == "personal_info" else None
        if address:
            for key in _ADDRESS_FIELDS:
                if key in address:
                    setattr(employee, key, address[key])


def _default_ens_fields(employee: Employee) -> None:
    if employee.ens_subdomain and not employee.ens_full_domain:
        employee.ens_full_domain = f"{employee.ens_subdomain}.{settings.ENS_PARENT_DOMAIN}"
    if employee.ens_full_domain and not employee.ens_node:
        employee.ens_node = namehash(employee.ens_full_domain)
    if employee.ens_subdomain and not employee.ens_resolver_address:
        employee.ens_resolver_address = settings.ENS_DEFAULT_RESOLVER.lower()


@router.get("/", response_model=EmployeeListResponse)
async def list_employees(
    department: Optional[str] = None,
    active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """List employees, newest first."""
    query = select(Employee)
    if department:
        query = query.where(Employee.department == department)
    if active is not None:
        query = query.where(Employee.is_active == active)
    query = query.order_by(Employee.created_at.desc(), Employee.id.desc())

    employees, total, total_pages = await paginate(db, query, page, limit)
    return EmployeeListResponse(
        employees=[EmployeeResponse.from_model(e) for e in employees],
        total_pages=total_pages,
        current_page=page,
        total=total,
    )


@router.get("/pending-payments/list", response_model=PendingPaymentsResponse)
async def list_pending_payments(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Active employees whose next payment is due."""
    result = await db.execute(select(Employee).where(Employee.is_active.is_(True)))
    now = datetime.utcnow()
    due = [
        e for e in result.scalars().all()
        if is_payment_due(e.last_payment_at, e.payment_frequency, now)
    ]
    return PendingPaymentsResponse(
        employees=[EmployeeResponse.from_model(e) for e in due],
        count=len(due),
    )


@router.get("/stats/overview", response_model=EmployeeStats)
async def employee_stats(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    total = (await db.execute(select(func.count(Employee.id)))).scalar() or 0
    active = (
        await db.execute(select(func.count(Employee.id)).where(Employee.is_active.is_(True)))
    ).scalar() or 0

    active_rows = (
        await db.execute(select(Employee).where(Employee.is_active.is_(True)))
    ).scalars().all()
    now = datetime.utcnow()
    pending = sum(
        1 for e in active_rows if is_payment_due(e.last_payment_at, e.payment_frequency, now)
    )

    breakdown = await db.execute(
        select(Employee.department, func.count(Employee.id))
        .where(Employee.is_active.is_(True))
        .group_by(Employee.department)
        .order_by(func.count(Employee.id).desc())
    )

    return EmployeeStats(
        total_employees=total,
        active_employees=active,
        inactive_employees=total - active,
        pending_payments=pending,
        department_breakdown=[
            DepartmentCount(department=department, count=count)
            for department, count in breakdown.all()
        ],
    )


@router.get("/wallet/{wallet_address}", response_model=EmployeeResponse)
async def read_employee_by_wallet(
    wallet_address: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    employee = await get_employee_by_wallet(db, wallet_address)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return EmployeeResponse.from_model(employee)


@router.get("/ens/{subdomain}", response_model=EmployeeResponse)
async def read_employee_by_ens(
    subdomain: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    result = await db.execute(
        select(Employee).where(Employee.ens_subdomain == subdomain.lower())
    )
    employee = result.scalars().first()
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return EmployeeResponse.from_model(employee)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def read_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    employee = await get_employee_or_404(db, employee_id)
    return EmployeeResponse.from_model(employee)


@router.post("/", response_model=EmployeeMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_in: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Create an employee.

    The ENS full domain defaults to ``<subdomain>.<parent domain>`` and
    the node to its namehash.
    """
    if employee_in.company_id is not None and await db.get(Company, employee_in.company_id) is None:
        raise HTTPException(status_code=404, detail="Company not found")

    existing = await db.execute(
        select(Employee.id).where(
            (Employee.wallet_address == employee_in.payroll_settings.wallet_address)
            | (Employee.email == employee_in.personal_info.email)
        )
    )
    if existing.first():
        raise HTTPException(status_code=400, detail=DUPLICATE_EMPLOYEE)

    employee = Employee(
        company_id=employee_in.company_id,
        start_date=datetime.utcnow(),
        created_by=current_user.address,
        updated_by=current_user.address,
    )
    _apply_groups(employee, employee_in.model_dump(exclude_none=True))
    _default_ens_fields(employee)

    db.add(employee)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail=DUPLICATE_EMPLOYEE)
    await db.refresh(employee)

    logger.info(f"Employee {employee.id} created by {current_user.address}")
    return EmployeeMutationResponse(
        message="Employee created successfully",
        employee=EmployeeResponse.from_model(employee),
    )


@router.put("/{employee_id}", response_model=EmployeeMutationResponse)
async def update_employee(
    employee_id: int,
    employee_in: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Partially update the nested groups of an employee."""
    employee = await get_employee_or_404(db, employee_id)

    data = employee_in.model_dump(exclude_unset=True)
    ens_changes = data.get("ens_details") or {}
    if "subdomain" in ens_changes and "full_domain" not in ens_changes:
        # A new label invalidates the derived domain and node
        employee.ens_full_domain = None
        employee.ens_node = None
    _apply_groups(employee, data)
    _default_ens_fields(employee)
    employee.updated_by = current_user.address
    employee.updated_at = datetime.utcnow()

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail=DUPLICATE_EMPLOYEE)
    await db.refresh(employee)

    return EmployeeMutationResponse(
        message="Employee updated successfully",
        employee=EmployeeResponse.from_model(employee),
    )


async def _set_active(db: AsyncSession, employee_id: int, active: bool, user: CurrentUser) -> Employee:
    employee = await get_employee_or_404(db, employee_id)
    employee.is_active = active
    employee.updated_by = user.address
    employee.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(employee)
    return employee


@router.patch("/{employee_id}/deactivate", response_model=EmployeeMutationResponse)
async def deactivate_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    employee = await _set_active(db, employee_id, False, current_user)
    return EmployeeMutationResponse(
        message="Employee deactivated successfully",
        employee=EmployeeResponse.from_model(employee),
    )


@router.patch("/{employee_id}/activate", response_model=EmployeeMutationResponse)
async def activate_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    employee = await _set_active(db, employee_id, True, current_user)
    return EmployeeMutationResponse(
        message="Employee activated successfully",
        employee=EmployeeResponse.from_model(employee),
    )


@router.patch("/{employee_id}/payment", response_model=EmployeeMutationResponse)
async def record_payment(
    employee_id: int,
    payment: Optional[PaymentUpdate] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Set the employee's last payment time (now when no timestamp is given)."""
    employee = await get_employee_or_404(db, employee_id)

    paid_at = payment.timestamp if payment and payment.timestamp else datetime.utcnow()
    employee.last_payment_at = as_naive_utc(paid_at)
    employee.updated_by = current_user.address
    employee.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(employee)

    return EmployeeMutationResponse(
        message="Payment timestamp updated successfully",
        employee=EmployeeResponse.from_model(employee),
    )


@router.delete("/{employee_id}", response_model=MessageResponse)
async def delete_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    employee = await get_employee_or_404(db, employee_id)
    await db.delete(employee)
    await db.commit()

    logger.info(f"Employee {employee_id} deleted by {current_user.address}")
    return MessageResponse(message="Employee deleted successfully")
