"""
Common API Helper Functions

Reusable lookups and pagination shared by the routers.
"""

from typing import Optional, Tuple

from fastapi import HTTPException, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.models.employee import Employee


async def get_employee_or_404(
    db: AsyncSession,
    employee_id: int,
    company_id: Optional[int] = None,
) -> Employee:
    """
    Load an employee by id, optionally scoped to a company.

    Raises:
        HTTPException: 404 if the employee does not exist (in that company)
    """
    employee = await db.get(Employee, employee_id)
    if employee is None or (company_id is not None and employee.company_id != company_id):
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


async def get_employee_by_wallet(db: AsyncSession, wallet_address: str) -> Optional[Employee]:
    result = await db.execute(
        select(Employee).where(Employee.wallet_address == wallet_address.lower())
    )
    return result.scalar_one_or_none()


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int,
    limit: int,
) -> Tuple[list, int, int]:
    """
    Run ``query`` for one page.

    Returns:
        (rows, total, total_pages)
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    rows = list(result.scalars().all())
    total_pages = (total + limit - 1) // limit
    return rows, total, total_pages


def disable_caching(response: Response) -> None:
    """Mark a response as non-cacheable."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
