from datetime import datetime, timedelta

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.core.config import settings
from app.core.rate_limiter import RateLimits, limiter
from app.core.security import (
    build_signin_message,
    create_access_token,
    parse_signin_message,
    verify_wallet_signature,
)
from app.core.wallet import is_valid_address
from app.schemas.auth import SigninMessage, Token, WalletLoginRequest

router = APIRouter()


@router.get("/message", response_model=SigninMessage)
async def get_signin_message(
    wallet_address: str = Query(..., description="Wallet that will sign the message"),
):
    """Message the wallet must sign (personal_sign) to log in."""
    if not is_valid_address(wallet_address):
        raise HTTPException(status_code=400, detail="Invalid wallet address")

    return SigninMessage(
        wallet_address=wallet_address.lower(),
        message=build_signin_message(wallet_address),
        expires_in=settings.SIGNIN_MESSAGE_TTL_SECONDS,
    )


@router.post("/wallet-login", response_model=Token)
@limiter.limit(RateLimits.AUTH_LOGIN)
async def wallet_login(request: Request, login: WalletLoginRequest):
    """
    Exchange a signed sign-in message for a bearer token.

    The message must name the wallet, be fresh, and the signature must
    recover to that wallet.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid wallet signature",
        headers={"WWW-Authenticate": "Bearer"},
    )

    message_wallet, issued_at = parse_signin_message(login.message)
    if message_wallet != login.wallet_address or issued_at is None:
        raise credentials_exception

    age = datetime.utcnow() - issued_at
    if age > timedelta(seconds=settings.SIGNIN_MESSAGE_TTL_SECONDS) or age < timedelta(seconds=-60):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign-in message expired",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not verify_wallet_signature(login.wallet_address, login.message, login.signature):
        raise credentials_exception

    role = "admin" if login.wallet_address == settings.LEDGER_OWNER_ADDRESS.lower() else "employee"
    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return Token(
        access_token=create_access_token(login.wallet_address, role=role, expires_delta=expires),
        expires_in=int(expires.total_seconds()),
        address=login.wallet_address,
        role=role,
    )
