from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import WALLET_PATTERN, parse_amount

BonusStatus = Literal["pending", "distributed"]

BONUS_MIN = "0.001"


class BonusCreate(BaseModel):
    employee_id: int
    amount: str
    reason: str = Field(..., min_length=1, max_length=500)
    token_address: str = Field(..., pattern=WALLET_PATTERN)

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v) -> str:
        return parse_amount(v, BONUS_MIN)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Reason is required")
        return v


class BonusUpdate(BaseModel):
    amount: Optional[str] = None
    reason: Optional[str] = Field(None, min_length=1, max_length=500)
    token_address: Optional[str] = Field(None, pattern=WALLET_PATTERN)

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v):
        if v is None:
            return v
        return parse_amount(v, BONUS_MIN)


class BulkDistributeRequest(BaseModel):
    bonus_ids: List[int] = Field(default_factory=list)


class BonusResponse(BaseModel):
    id: int
    employee_id: int
    employee_name: Optional[str] = None
    amount: str
    token_address: str
    token_symbol: str
    reason: str
    status: BonusStatus
    transaction_hash: Optional[str] = None
    distribution_date: Optional[datetime] = None
    distributed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class BonusMutationResponse(BaseModel):
    message: str
    bonus: BonusResponse


class BonusListResponse(BaseModel):
    data: List[BonusResponse]
    total_pages: int
    current_page: int
    total: int


class BulkDistributeResponse(BaseModel):
    success: bool = True
    transaction_hash: str
    distributed_count: int
    message: str


class BonusStats(BaseModel):
    total_bonuses: int
    pending_bonuses: int
    distributed_bonuses: int
    total_distributed: str
    this_month_distributed: str
