from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class Company(Base):
    """A company registered by its owner wallet, one per wallet."""
    __tablename__ = "companies"  # type: ignore[assignment]

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    ens_domain = Column(String(255), unique=True, nullable=False, index=True)
    ens_node = Column(String(66), nullable=True)
    owner_wallet = Column(String(42), unique=True, nullable=False, index=True)

    # Set once the client reports the ENS registration transaction
    ens_transaction_hash = Column(String(66), nullable=True)
    ens_block_number = Column(Integer, nullable=True)
    ens_gas_used = Column(Integer, nullable=True)
    ens_registration_confirmed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    employees = relationship("Employee", back_populates="company")
