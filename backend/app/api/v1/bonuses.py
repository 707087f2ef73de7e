"""
Bonus management: creation, editing and (simulated) distribution.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db
from app.api.helpers import get_employee_or_404, paginate
from app.core.wallet import generate_transaction_hash, token_symbol
from app.models.bonus import Bonus
from app.schemas.bonus import (
    BonusCreate,
    BonusListResponse,
    BonusMutationResponse,
    BonusResponse,
    BonusStats,
    BonusUpdate,
    BulkDistributeRequest,
    BulkDistributeResponse,
)
from app.schemas.common import MessageResponse, TransactionResponse
from app.services.payment_schedule import format_amount, to_decimal

router = APIRouter()
logger = logging.getLogger("web3payroll.bonuses")


async def _get_bonus_or_404(db: AsyncSession, bonus_id: int) -> Bonus:
    bonus = await db.get(Bonus, bonus_id)
    if bonus is None:
        raise HTTPException(status_code=404, detail="Bonus not found")
    return bonus


def _mark_distributed(bonus: Bonus, tx_hash: str, user: CurrentUser, now: datetime) -> None:
    bonus.status = "distributed"
    bonus.transaction_hash = tx_hash
    bonus.distribution_date = now
    bonus.distributed_by = user.address
    bonus.updated_by = user.address
    bonus.updated_at = now


@router.get("/", response_model=BonusListResponse)
async def list_bonuses(
    employee_id: Optional[int] = None,
    status: Optional[Literal["pending", "distributed"]] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    query = select(Bonus)
    if employee_id is not None:
        query = query.where(Bonus.employee_id == employee_id)
    if status:
        query = query.where(Bonus.status == status)
    query = query.order_by(Bonus.created_at.desc(), Bonus.id.desc())

    bonuses, total, total_pages = await paginate(db, query, page, limit)
    return BonusListResponse(
        data=[BonusResponse.model_validate(b) for b in bonuses],
        total_pages=total_pages,
        current_page=page,
        total=total,
    )


@router.get("/stats/overview", response_model=BonusStats)
async def bonus_stats(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Counts plus distributed totals, all time and for the current calendar month."""
    bonuses = (await db.execute(select(Bonus))).scalars().all()

    now = datetime.utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    distributed = [b for b in bonuses if b.status == "distributed"]
    this_month = [
        b for b in distributed if b.distribution_date and b.distribution_date >= month_start
    ]

    return BonusStats(
        total_bonuses=len(bonuses),
        pending_bonuses=sum(1 for b in bonuses if b.status == "pending"),
        distributed_bonuses=len(distributed),
        total_distributed=format_amount(sum((to_decimal(b.amount) for b in distributed), Decimal("0"))),
        this_month_distributed=format_amount(sum((to_decimal(b.amount) for b in this_month), Decimal("0"))),
    )


@router.get("/{bonus_id}", response_model=BonusResponse)
async def read_bonus(
    bonus_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return BonusResponse.model_validate(await _get_bonus_or_404(db, bonus_id))


@router.post("/", response_model=BonusMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_bonus(
    bonus_in: BonusCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    employee = await get_employee_or_404(db, bonus_in.employee_id)

    bonus = Bonus(
        employee_id=employee.id,
        employee_name=employee.name,
        amount=bonus_in.amount,
        token_address=bonus_in.token_address.lower(),
        token_symbol=token_symbol(bonus_in.token_address),
        reason=bonus_in.reason,
        status="pending",
        created_by=current_user.address,
        updated_by=current_user.address,
    )
    db.add(bonus)
    await db.commit()
    await db.refresh(bonus)

    logger.info(f"Bonus {bonus.id} of {bonus.amount} {bonus.token_symbol} created for employee {employee.id}")
    return BonusMutationResponse(
        message="Bonus created successfully",
        bonus=BonusResponse.model_validate(bonus),
    )


@router.put("/{bonus_id}", response_model=BonusMutationResponse)
async def update_bonus(
    bonus_id: int,
    bonus_in: BonusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Edit amount, reason or token of a pending bonus. Status is not editable here."""
    bonus = await _get_bonus_or_404(db, bonus_id)
    if bonus.status == "distributed":
        raise HTTPException(status_code=400, detail="Cannot modify distributed bonus")

    if bonus_in.amount is not None:
        bonus.amount = bonus_in.amount
    if bonus_in.reason is not None:
        bonus.reason = bonus_in.reason
    if bonus_in.token_address is not None:
        bonus.token_address = bonus_in.token_address.lower()
        bonus.token_symbol = token_symbol(bonus_in.token_address)
    bonus.updated_by = current_user.address
    bonus.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(bonus)
    return BonusMutationResponse(
        message="Bonus updated successfully",
        bonus=BonusResponse.model_validate(bonus),
    )


@router.post("/bulk", response_model=BulkDistributeResponse)
async def bulk_distribute(
    request: BulkDistributeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Distribute every pending bonus among ``bonus_ids`` under one transaction hash."""
    if not request.bonus_ids:
        raise HTTPException(status_code=400, detail="Invalid bonus IDs")

    result = await db.execute(
        select(Bonus).where(Bonus.id.in_(request.bonus_ids), Bonus.status == "pending")
    )
    pending = result.scalars().all()

    tx_hash = generate_transaction_hash()
    now = datetime.utcnow()
    for bonus in pending:
        _mark_distributed(bonus, tx_hash, current_user, now)
    await db.commit()

    logger.info(f"Bulk distributed {len(pending)} bonuses in {tx_hash}")
    return BulkDistributeResponse(
        transaction_hash=tx_hash,
        distributed_count=len(pending),
        message=f"{len(pending)} bonuses distributed successfully",
    )


@router.post("/{bonus_id}/distribute", response_model=TransactionResponse)
async def distribute_bonus(
    bonus_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    bonus = await _get_bonus_or_404(db, bonus_id)
    if bonus.status == "distributed":
        raise HTTPException(status_code=400, detail="Bonus already distributed")

    tx_hash = generate_transaction_hash()
    _mark_distributed(bonus, tx_hash, current_user, datetime.utcnow())
    await db.commit()

    logger.info(f"Bonus {bonus_id} distributed in {tx_hash}")
    return TransactionResponse(
        transaction_hash=tx_hash,
        message="Bonus distributed successfully",
    )


@router.delete("/{bonus_id}", response_model=MessageResponse)
async def delete_bonus(
    bonus_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    bonus = await _get_bonus_or_404(db, bonus_id)
    if bonus.status == "distributed":
        raise HTTPException(status_code=400, detail="Cannot delete distributed bonus")

    await db.delete(bonus)
    await db.commit()
    return MessageResponse(message="Bonus deleted successfully")
