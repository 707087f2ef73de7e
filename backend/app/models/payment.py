"""
Record of every salary payment processed through the payroll endpoints.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from app.db.base_class import Base


class PaymentRecord(Base):
    __tablename__ = "payment_records"  # type: ignore[assignment]

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)

    employee_name = Column(String(100), nullable=True)
    wallet_address = Column(String(42), nullable=False)
    amount = Column(String(78), nullable=False)
    token = Column(String(10), default="ETH", nullable=False)
    transaction_hash = Column(String(66), nullable=False, index=True)
    paid_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    processed_by = Column(String(42), nullable=True)

    __table_args__ = (
        Index("ix_payment_records_company_paid", "company_id", "paid_at"),
    )
