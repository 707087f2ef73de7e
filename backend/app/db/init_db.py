"""
Schema creation and seed data applied at startup.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import ZERO_ADDRESS, settings
from app.db import base  # noqa: F401  registers every model on Base.metadata
from app.db.base_class import Base
from app.db.session import AsyncSessionLocal, engine
from app.models.ens_record import EnsRecord

logger = logging.getLogger("web3payroll.db")


async def seed_parent_domain(db: AsyncSession) -> EnsRecord:
    """
    Ensure the registry holds the company's parent domain record.

    Args:
        db: Database session (committed here when a record is inserted)

    Returns:
        The existing or newly created parent record
    """
    parent_domain = settings.ENS_PARENT_DOMAIN.lower()
    label = parent_domain.split(".")[0]

    result = await db.execute(select(EnsRecord).where(EnsRecord.subdomain == label))
    record = result.scalar_one_or_none()
    if record:
        return record

    record = EnsRecord(
        subdomain=label,
        full_domain=parent_domain,
        owner=ZERO_ADDRESS,
        resolver=settings.ENS_DEFAULT_RESOLVER.lower(),
        created_by="system",
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    logger.info(f"Seeded ENS parent domain {parent_domain}")
    return record


async def init_db() -> None:
    """Create missing tables and seed reference rows."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        await seed_parent_domain(db)
    logger.info("Database initialised")
