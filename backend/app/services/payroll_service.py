"""
Payroll Service

Records salary payments. The chain transaction itself is simulated: the
caller supplies the hash and every employee in a batch shares it.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.company import Company
from app.models.employee import Employee
from app.models.payment import PaymentRecord

logger = logging.getLogger("web3payroll.payroll_service")


async def pay_employees(
    db: AsyncSession,
    employees: Sequence[Employee],
    company: Optional[Company],
    transaction_hash: str,
    processed_by: str,
    paid_at: Optional[datetime] = None,
) -> List[PaymentRecord]:
    """
    Record one payment per employee and move their last payment time.

    Args:
        db: Database session; committed once for the whole batch
        employees: Active employees to pay
        company: Paying company (None for unscoped payments)
        transaction_hash: Hash shared by the batch
        processed_by: Wallet that triggered the payment
        paid_at: Payment time, defaults to utcnow

    Returns:
        The created payment records
    """
    paid_at = paid_at or datetime.utcnow()
    records = []
    for employee in employees:
        record = PaymentRecord(
            employee_id=employee.id,
            company_id=company.id if company else employee.company_id,
            employee_name=employee.name,
            wallet_address=employee.wallet_address,
            amount=employee.salary_amount,
            token=employee.preferred_token,
            transaction_hash=transaction_hash,
            paid_at=paid_at,
            processed_by=processed_by,
        )
        employee.last_payment_at = paid_at
        employee.updated_by = processed_by
        db.add(record)
        records.append(record)

    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.error(f"Failed to record payments for transaction {transaction_hash}")
        raise

    return records
