from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from app.db.base_class import Base


class EnsRecord(Base):
    """A subdomain in the company ENS registry."""
    __tablename__ = "ens_records"  # type: ignore[assignment]

    id = Column(Integer, primary_key=True, index=True)
    subdomain = Column(String(63), unique=True, nullable=False, index=True)
    full_domain = Column(String(255), unique=True, nullable=False)
    owner = Column(String(42), nullable=False, index=True)
    resolver = Column(String(42), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_by = Column(String(42), nullable=True)
    transferred_at = Column(DateTime, nullable=True)
    transferred_by = Column(String(42), nullable=True)
