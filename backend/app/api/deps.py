import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import decode_access_token
from app.core.wallet import is_valid_address
from app.db.session import AsyncSessionLocal
from app.models.company import Company

logger = logging.getLogger("web3payroll.deps")

WALLET_HEADER = "x-wallet-address"

# Bearer tokens are optional; requests without one run as the default identity
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/wallet-login", auto_error=False
)


@dataclass(frozen=True)
class CurrentUser:
    address: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def default_user() -> CurrentUser:
    return CurrentUser(
        address=settings.DEFAULT_USER_ADDRESS.lower(),
        role=settings.DEFAULT_USER_ROLE,
    )


async def get_db() -> AsyncGenerator:
    async with AsyncSessionLocal() as session:
        yield session


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
) -> CurrentUser:
    """
    Resolve the caller from an optional bearer token.

    Args:
        token: JWT access token from the Authorization header

    Returns:
        The token's identity, or the default admin identity when the token
        is missing, invalid or expired
    """
    if not token:
        return default_user()

    try:
        payload = decode_access_token(token)
    except JWTError as e:
        logger.warning(f"Ignoring invalid bearer token: {e}")
        return default_user()

    subject = payload.get("sub")
    if not is_valid_address(subject):
        logger.warning("Ignoring bearer token without a wallet subject")
        return default_user()

    return CurrentUser(address=subject.lower(), role=payload.get("role") or "employee")


async def require_wallet(request: Request) -> str:
    """
    Wallet address from the ``x-wallet-address`` header, lowercased.

    Raises:
        HTTPException: 401 when the header is missing, 400 when malformed
    """
    wallet = request.headers.get(WALLET_HEADER)
    if not wallet:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Wallet required",
                "message": "Provide wallet address in x-wallet-address header",
            },
        )
    if not is_valid_address(wallet):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid wallet",
                "message": "Wallet address must be 0x followed by 40 hex characters",
            },
        )
    return wallet.lower()


async def optional_wallet(request: Request) -> Optional[str]:
    wallet = request.headers.get(WALLET_HEADER)
    if wallet and is_valid_address(wallet):
        return wallet.lower()
    return None


async def get_current_company(
    wallet: str = Depends(require_wallet),
    db: AsyncSession = Depends(get_db),
) -> Company:
    """Company owned by the calling wallet; 404 until one is registered."""
    result = await db.execute(select(Company).where(Company.owner_wallet == wallet))
    company = result.scalar_one_or_none()
    if company is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "Company not found",
                "message": "Please register your company first",
            },
        )
    return company
