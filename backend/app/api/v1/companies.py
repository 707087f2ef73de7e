"""
Company onboarding (one company per wallet) and its minimal employee list.
"""

import logging
import re

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_company, get_db, require_wallet
from app.api.helpers import get_employee_or_404
from app.core.rate_limiter import RateLimits, limiter
from app.core.wallet import is_transaction_hash, namehash
from app.models.company import Company
from app.models.employee import Employee
from app.schemas.company import (
    COMPANY_DOMAIN_PATTERN,
    CompanyCreatedResponse,
    CompanyData,
    CompanyEmployeeCreate,
    CompanyEmployeeResponse,
    CompanyRegisterRequest,
    CompanyRegisterResponse,
    CompanyResponse,
    CompanyStatusResponse,
    CreateAfterEnsRequest,
    DomainCheckResponse,
)
from app.services.ens_service import ENSService, get_ens_service

router = APIRouter()
logger = logging.getLogger("web3payroll.companies")


async def _company_for_wallet(db: AsyncSession, wallet: str):
    result = await db.execute(select(Company).where(Company.owner_wallet == wallet))
    return result.scalar_one_or_none()


async def _company_for_domain(db: AsyncSession, domain: str):
    result = await db.execute(select(Company).where(Company.ens_domain == domain.lower()))
    return result.scalar_one_or_none()


@router.get("/status", response_model=CompanyStatusResponse)
async def company_status(
    wallet: str = Depends(require_wallet),
    db: AsyncSession = Depends(get_db),
):
    company = await _company_for_wallet(db, wallet)
    return CompanyStatusResponse(
        has_company=company is not None,
        company=CompanyResponse.model_validate(company) if company else None,
    )


@router.post("/register", response_model=CompanyRegisterResponse)
async def register_company(
    payload: dict = Body(...),
    wallet: str = Depends(require_wallet),
    db: AsyncSession = Depends(get_db),
    ens: ENSService = Depends(get_ens_service),
):
    """
    Check that a company can be registered and return its ENS registration quote.

    The company row is only created by ``/create-after-ens`` once the
    client has submitted the ENS registration transaction.
    """
    try:
        request = CompanyRegisterRequest.model_validate(payload)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid input")

    if await _company_for_wallet(db, wallet):
        raise HTTPException(status_code=409, detail="Wallet already has company")

    full_domain = f"{request.company_domain}.eth"
    if await _company_for_domain(db, full_domain):
        raise HTTPException(status_code=409, detail="Domain taken")

    availability = await ens.check_domain_availability(request.company_domain)
    if not availability.available:
        raise HTTPException(
            status_code=409,
            detail={"error": "ENS domain not available", "reason": availability.reason},
        )

    registration = await ens.register_domain_on_testnet(request.company_domain, wallet)
    if not registration.get("success"):
        logger.error(f"ENS registration info failed for {full_domain}: {registration.get('error')}")
        raise HTTPException(
            status_code=400,
            detail={
                "error": "ENS registration info failed",
                "details": registration.get("error"),
                "message": "Unable to get domain registration information",
            },
        )

    return CompanyRegisterResponse(
        registration_info={
            "domain": registration.get("domain"),
            "cost": registration.get("cost"),
            "network": registration.get("network"),
            "message": registration.get("message"),
            "available": True,
        },
        company_data=CompanyData(
            name=request.company_name,
            ens_domain=full_domain,
            ens_node=namehash(full_domain),
            owner_wallet=wallet,
        ),
    )


@router.post("/create-after-ens", response_model=CompanyCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_after_ens(
    request: CreateAfterEnsRequest,
    wallet: str = Depends(require_wallet),
    db: AsyncSession = Depends(get_db),
):
    """Persist the company once its ENS registration transaction is known."""
    if request.company_data is None or not request.transaction_hash:
        raise HTTPException(status_code=400, detail="Missing required data")

    data = request.company_data
    if data.owner_wallet.lower() != wallet:
        raise HTTPException(status_code=403, detail="Wallet address mismatch")

    if not is_transaction_hash(request.transaction_hash):
        raise HTTPException(status_code=400, detail="Invalid transaction hash format")

    ens_domain = data.ens_domain.lower()
    company = Company(
        name=data.name,
        ens_domain=ens_domain,
        ens_node=data.ens_node or namehash(ens_domain),
        owner_wallet=wallet,
        ens_transaction_hash=request.transaction_hash,
        ens_block_number=request.block_number,
        ens_gas_used=request.gas_used,
        ens_registration_confirmed=True,
    )
    db.add(company)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Company already exists for this wallet or domain")
    await db.refresh(company)

    logger.info(f"Company {company.id} ({ens_domain}) created for {wallet}")
    return CompanyCreatedResponse(
        company=CompanyResponse.model_validate(company),
        message="Company created successfully after verified ENS registration",
    )


@router.get("/my-company")
async def my_company(
    wallet: str = Depends(require_wallet),
    db: AsyncSession = Depends(get_db),
):
    company = await _company_for_wallet(db, wallet)
    if company is None:
        raise HTTPException(status_code=404, detail="No company found")
    return {"company": CompanyResponse.model_validate(company)}


@router.get("/employees")
async def company_employees(
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Employee).where(Employee.company_id == company.id).order_by(Employee.id)
    )
    return {"employees": [CompanyEmployeeResponse.from_model(e) for e in result.scalars().all()]}


@router.post("/employees", status_code=status.HTTP_201_CREATED)
async def add_company_employee(
    payload: dict = Body(...),
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    try:
        request = CompanyEmployeeCreate.model_validate(payload)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid input")

    employee = Employee(
        company_id=company.id,
        name=request.name,
        wallet_address=request.wallet_address,
        salary_amount=request.salary_amount,
        preferred_token=request.payment_token,
        created_by=company.owner_wallet,
        updated_by=company.owner_wallet,
    )
    if request.ens_name:
        label = request.ens_name.lower()
        employee.ens_subdomain = label
        employee.ens_full_domain = f"{label}.{company.ens_domain}"
        employee.ens_node = namehash(employee.ens_full_domain)

    db.add(employee)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Employee already exists")
    await db.refresh(employee)

    return {"success": True, "employee": CompanyEmployeeResponse.from_model(employee)}


@router.delete("/employees/{employee_id}")
async def remove_company_employee(
    employee_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    employee = await get_employee_or_404(db, employee_id, company_id=company.id)
    await db.delete(employee)
    await db.commit()
    return {"success": True}


@router.get("/check-domain/{domain}", response_model=DomainCheckResponse)
@limiter.limit(RateLimits.ENS_LOOKUP)
async def check_domain(
    request: Request,
    domain: str,
    db: AsyncSession = Depends(get_db),
    ens: ENSService = Depends(get_ens_service),
):
    """Database first, then ENS; an ENS failure is reported as available."""
    if not re.match(COMPANY_DOMAIN_PATTERN, domain):
        raise HTTPException(status_code=400, detail="Invalid domain")

    full_domain = f"{domain}.eth"
    if await _company_for_domain(db, full_domain):
        return DomainCheckResponse(
            available=False, domain=full_domain, reason="Domain taken", source="database"
        )

    try:
        availability = await ens.check_domain_availability(domain)
    except Exception as e:
        logger.warning(f"ENS check failed for {domain}, assuming available: {e}")
        return DomainCheckResponse(
            available=True,
            domain=full_domain,
            reason="Available (blockchain check failed, assuming available)",
            source="fallback",
        )

    return DomainCheckResponse(
        available=availability.available,
        domain=full_domain,
        reason=availability.reason,
        source="blockchain",
        on_chain=availability.on_chain,
    )
