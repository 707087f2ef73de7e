from pydantic import BaseModel, Field, field_validator

from app.schemas.common import WALLET_PATTERN


class SigninMessage(BaseModel):
    wallet_address: str
    message: str
    expires_in: int


class WalletLoginRequest(BaseModel):
    wallet_address: str = Field(..., pattern=WALLET_PATTERN)
    message: str = Field(..., min_length=1, max_length=2000)
    signature: str = Field(..., min_length=1, max_length=200)

    @field_validator("wallet_address")
    @classmethod
    def lowercase_wallet(cls, v: str) -> str:
        return v.lower()


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    address: str
    role: str
