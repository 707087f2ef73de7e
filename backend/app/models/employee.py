from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class Employee(Base):
    __tablename__ = "employees"  # type: ignore[assignment]

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)

    # Personal info
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(50), nullable=True)
    street = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    # Employment details
    start_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    position = Column(String(100), nullable=True)
    department = Column(String(100), nullable=True, index=True)
    employment_type = Column(String(20), default="full-time", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Payroll settings
    wallet_address = Column(String(42), unique=True, nullable=False, index=True)
    salary_amount = Column(String(78), nullable=False)  # decimal string, never a float
    payment_frequency = Column(String(20), default="MONTHLY", nullable=False)
    preferred_token = Column(String(10), default="ETH", nullable=False)
    last_payment_at = Column(DateTime, nullable=True)  # None: never paid

    # ENS
    ens_subdomain = Column(String(63), nullable=True, index=True)
    ens_full_domain = Column(String(255), nullable=True)
    ens_node = Column(String(66), nullable=True)
    ens_resolver_address = Column(String(42), nullable=True)

    # Tax information
    tax_id = Column(String(50), nullable=True)
    tax_withholdings = Column(String(78), default="0", nullable=False)
    tax_jurisdiction = Column(String(100), nullable=True)
    tax_exempt = Column(Boolean, default=False, nullable=False)

    # Blockchain metadata
    contract_address = Column(String(42), nullable=True)
    transaction_hash = Column(String(66), nullable=True)
    block_number = Column(Integer, nullable=True)
    gas_used = Column(String(78), nullable=True)

    # Audit
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_by = Column(String(42), nullable=True)
    updated_by = Column(String(42), nullable=True)

    company = relationship("Company", back_populates="employees")

    __table_args__ = (
        Index("ix_employees_company_active", "company_id", "is_active"),
    )

    @property
    def full_name(self) -> str:
        return self.name

    @property
    def ens_domain(self) -> str | None:
        return self.ens_full_domain or None
