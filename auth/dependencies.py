from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from bson import ObjectId
from typing import Any, Dict, Optional
import logging

from accounts.accounts import ALL_KINDS, find_account_by_id
from auth.jwt_handler import verify_token
from models.account import AccountKind

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Access token required.")
    payload = verify_token(credentials.credentials)
    if payload is None or not ObjectId.is_valid(payload["id"]):
        raise HTTPException(status_code=401, detail="Invalid or expired token.")
    return payload


def require_account(*kinds: AccountKind):
    """
    Build a dependency that resolves the bearer token to a stored account of
    one of ``kinds``. The account is re-read on every request so that blocks
    and deletions take effect before the token expires.
    """
    allowed = {kind.value for kind in kinds}

    async def dependency(request: Request, payload: Dict[str, Any] = Depends(get_token_payload)):
        if payload["role"] not in allowed:
            raise HTTPException(
                status_code=403,
                detail=f"Access forbidden: {' or '.join(sorted(allowed))} role required.",
            )
        account = await find_account_by_id(request.app.mongodb, ObjectId(payload["id"]), kinds)
        if account is None:
            raise HTTPException(status_code=401, detail="Account not found.")
        if account.is_blocked:
            logger.warning("Blocked %s account %s attempted access", account.role, account.id)
            raise HTTPException(status_code=403, detail="Account is blocked.")
        return account

    return dependency


get_current_customer = require_account(AccountKind.CUSTOMER)
get_current_driver = require_account(AccountKind.DRIVER)
get_current_admin = require_account(AccountKind.ADMIN)
get_current_account = require_account(*ALL_KINDS)
