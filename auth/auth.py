from fastapi import APIRouter, HTTPException, Request
from typing import Iterable
import logging

from accounts.accounts import find_account_by_email
from auth.jwt_handler import create_access_token
from auth.password_handler import verify_password
from models.account import AccountKind
from models.user import UserLogin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


async def authenticate(db, credentials: UserLogin, kinds: Iterable[AccountKind]) -> dict:
    """Check credentials against accounts of ``kinds`` and issue a token."""
    account = await find_account_by_email(db, credentials.email, kinds)
    if not account or not verify_password(credentials.password, account.password_hash):
        logger.info("Failed login for %s", credentials.email)
        raise HTTPException(status_code=401, detail="Invalid credentials.")
    if account.is_blocked:
        raise HTTPException(status_code=403, detail="Account is blocked.")

    token = create_access_token(account.id, account.email, account.role)
    return {
        "message": f"{account.role} logged in successfully",
        "access_token": token,
        "token_type": "bearer",
        "role": account.role,
        "account_id": account.id,
    }


@router.post("/login")
async def login(credentials: UserLogin, request: Request):
    """Customer or driver login."""
    return await authenticate(
        request.app.mongodb, credentials, (AccountKind.CUSTOMER, AccountKind.DRIVER)
    )
