"""
Company ENS subdomain registry: registration, resolution and transfers.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db
from app.api.helpers import get_employee_by_wallet
from app.core.config import settings
from app.core.wallet import generate_transaction_hash, is_valid_address, namehash
from app.models.employee import Employee
from app.models.ens_record import EnsRecord
from app.schemas.common import SUBDOMAIN_PATTERN, TransactionResponse
from app.schemas.employee import EmployeeResponse
from app.schemas.ens import (
    EnsAvailabilityResponse,
    EnsRecordResponse,
    EnsRegisterRequest,
    EnsRegisterResponse,
    EnsResolveResponse,
    EnsStats,
    EnsSubdomainResponse,
    EnsTransferRequest,
)

router = APIRouter()
logger = logging.getLogger("web3payroll.ens_registry")


def _parent_label() -> str:
    return settings.ENS_PARENT_DOMAIN.lower().split(".")[0]


def _full_domain(subdomain: str) -> str:
    return f"{subdomain}.{settings.ENS_PARENT_DOMAIN.lower()}"


async def _get_record(db: AsyncSession, subdomain: str):
    result = await db.execute(select(EnsRecord).where(EnsRecord.subdomain == subdomain.lower()))
    return result.scalar_one_or_none()


@router.get("/company-domains", response_model=List[EnsRecordResponse])
async def company_domains(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    result = await db.execute(select(EnsRecord).order_by(EnsRecord.id))
    return [EnsRecordResponse.model_validate(r) for r in result.scalars().all()]


@router.post("/register", response_model=EnsRegisterResponse)
async def register_subdomain(
    request: EnsRegisterRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Register ``<subdomain>.<parent>`` to an employee and mirror it on the employee."""
    if await _get_record(db, request.subdomain):
        raise HTTPException(status_code=400, detail="Subdomain already exists")

    employee = await get_employee_by_wallet(db, request.employee_address)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")

    resolver = (request.resolver_address or settings.ENS_DEFAULT_RESOLVER).lower()
    record = EnsRecord(
        subdomain=request.subdomain,
        full_domain=_full_domain(request.subdomain),
        owner=request.employee_address,
        resolver=resolver,
        created_by=current_user.address,
    )
    db.add(record)

    employee.ens_subdomain = record.subdomain
    employee.ens_full_domain = record.full_domain
    employee.ens_node = namehash(record.full_domain)
    employee.ens_resolver_address = resolver
    employee.updated_by = current_user.address

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="Subdomain already exists")
    await db.refresh(record)

    logger.info(f"Registered {record.full_domain} to {record.owner}")
    return EnsRegisterResponse(
        transaction_hash=generate_transaction_hash(),
        domain=EnsRecordResponse.model_validate(record),
        message="ENS subdomain registered successfully",
    )


@router.get("/resolve/{ens_name}", response_model=EnsResolveResponse)
async def resolve_name(
    ens_name: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Resolve a full domain or a bare label to its owner."""
    name = ens_name.lower()
    result = await db.execute(
        select(EnsRecord).where(or_(EnsRecord.full_domain == name, EnsRecord.subdomain == name))
    )
    record = result.scalars().first()
    if record is None:
        raise HTTPException(status_code=404, detail="ENS name not found")
    return EnsResolveResponse(address=record.owner, domain=record.full_domain, resolver=record.resolver)


@router.post("/transfer", response_model=TransactionResponse)
async def transfer_subdomain(
    request: EnsTransferRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    record = await _get_record(db, request.subdomain)
    if record is None:
        raise HTTPException(status_code=404, detail="Subdomain not found")

    if not is_valid_address(request.new_owner):
        raise HTTPException(status_code=400, detail="Invalid new owner address")

    record.owner = request.new_owner.lower()
    record.transferred_at = datetime.utcnow()
    record.transferred_by = current_user.address
    await db.commit()

    logger.info(f"Transferred {record.full_domain} to {record.owner}")
    return TransactionResponse(
        transaction_hash=generate_transaction_hash(),
        message="ENS subdomain transferred successfully",
    )


@router.get("/subdomain/{subdomain}", response_model=EnsSubdomainResponse)
async def subdomain_details(
    subdomain: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    record = await _get_record(db, subdomain)
    if record is None:
        raise HTTPException(status_code=404, detail="Subdomain not found")

    result = await db.execute(select(Employee).where(Employee.ens_subdomain == record.subdomain))
    employee = result.scalars().first()
    return EnsSubdomainResponse(
        domain=EnsRecordResponse.model_validate(record),
        employee=EmployeeResponse.from_model(employee) if employee else None,
    )


@router.get("/check/{subdomain}", response_model=EnsAvailabilityResponse)
async def check_subdomain(
    subdomain: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    if not re.match(SUBDOMAIN_PATTERN, subdomain):
        return JSONResponse(
            status_code=400,
            content={"available": False, "error": "Invalid subdomain format"},
        )
    if not 3 <= len(subdomain) <= 63:
        return JSONResponse(
            status_code=400,
            content={"available": False, "error": "Subdomain must be between 3 and 63 characters"},
        )

    exists = await _get_record(db, subdomain) is not None
    return EnsAvailabilityResponse(
        available=not exists,
        subdomain=subdomain,
        full_domain=_full_domain(subdomain),
    )


@router.get("/stats/overview", response_model=EnsStats)
async def ens_stats(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    records = (await db.execute(select(EnsRecord))).scalars().all()
    parent = _parent_label()
    since = datetime.utcnow() - timedelta(days=30)

    employee_domains = sum(1 for r in records if r.subdomain != parent)
    return EnsStats(
        total_domains=len(records),
        employee_domains=employee_domains,
        company_domains=len(records) - employee_domains,
        recent_registrations=sum(1 for r in records if r.created_at and r.created_at > since),
    )
