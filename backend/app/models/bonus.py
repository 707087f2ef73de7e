from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from app.db.base_class import Base


class Bonus(Base):
    __tablename__ = "bonuses"  # type: ignore[assignment]

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_name = Column(String(100), nullable=True)

    amount = Column(String(78), nullable=False)
    token_address = Column(String(42), nullable=False)
    token_symbol = Column(String(10), nullable=False)
    reason = Column(String(500), nullable=False)

    # pending -> distributed, never back
    status = Column(String(20), default="pending", nullable=False, index=True)
    transaction_hash = Column(String(66), nullable=True)
    distribution_date = Column(DateTime, nullable=True)
    distributed_by = Column(String(42), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_by = Column(String(42), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    updated_by = Column(String(42), nullable=True)
