from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials
from pymongo.errors import PyMongoError
from datetime import datetime
from typing import List, Optional
import logging

from accounts.accounts import create_account, delete_account, find_account_by_id, update_account
from auth.auth import authenticate
from auth.dependencies import bearer_scheme, get_current_admin, get_token_payload
from auth.password_handler import hash_password
from database.connection import DUPLICATE_KEY, serialize_doc, to_object_id
from fares.fares import get_current_rate, list_rates, publish_rate
from models.account import AccountKind, AccountUpdate
from models.rate import RateRecord, RateUpdate
from models.ride import RideResponse, RideStatus
from models.user import Admin, UserCreate, UserLogin, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

DRIVER_ONLY_FIELDS = {"availability_status", "vehicle_details"}

BOOTSTRAP_MARKER = "first_admin"


# --- Admin accounts ---

@router.post("/register", response_model=UserResponse, status_code=201)
async def register_admin(
    admin: UserCreate,
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
):
    """
    The first admin may register freely; every later admin must be created
    by an existing admin. The first registration claims a marker document
    whose fixed _id lets only one concurrent request through.
    """
    db = request.app.mongodb
    bootstrap = await _claim_bootstrap(db)
    if not bootstrap:
        payload = await get_token_payload(credentials)
        await get_current_admin(request, payload)

    try:
        admin_doc = await create_account(db, AccountKind.ADMIN, {
            "email": admin.email,
            "password_hash": hash_password(admin.password),
            "name": admin.name,
            "phone": admin.phone,
        })
    except HTTPException:
        if bootstrap:
            await db["settings"].delete_one({"_id": BOOTSTRAP_MARKER})
        raise
    return UserResponse(**serialize_doc(admin_doc))


async def _claim_bootstrap(db) -> bool:
    if await db["users"].count_documents({"role": AccountKind.ADMIN.value}) > 0:
        return False
    try:
        await db["settings"].insert_one({"_id": BOOTSTRAP_MARKER, "claimed_at": datetime.utcnow()})
    except PyMongoError as exc:
        if getattr(exc, "code", None) == DUPLICATE_KEY:
            return False
        raise
    logger.info("Bootstrapping first admin account")
    return True


@router.post("/login")
async def login_admin(credentials: UserLogin, request: Request):
    return await authenticate(request.app.mongodb, credentials, (AccountKind.ADMIN,))


# --- Rides ---

@router.get("/rides", response_model=List[RideResponse])
async def get_all_rides(request: Request, status: Optional[RideStatus] = None, admin: Admin = Depends(get_current_admin)):
    query = {"status": status.value} if status else {}
    rides = await request.app.mongodb["rides"].find(query).sort("created_at", -1).to_list(length=None)
    return [RideResponse(**serialize_doc(ride)) for ride in rides]


@router.delete("/rides/{ride_id}", status_code=204)
async def delete_ride(ride_id: str, request: Request, admin: Admin = Depends(get_current_admin)):
    result = await request.app.mongodb["rides"].delete_one({"_id": to_object_id(ride_id, "ride ID")})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Ride not found.")
    logger.info("Admin %s deleted ride %s", admin.id, ride_id)
    return Response(status_code=204)


@router.delete("/reviews/{ride_id}", status_code=204)
async def delete_review(ride_id: str, request: Request, admin: Admin = Depends(get_current_admin)):
    """Remove the review attached to a ride. A ride without a review is left as is."""
    result = await request.app.mongodb["rides"].update_one(
        {"_id": to_object_id(ride_id, "ride ID")},
        {"$unset": {"review": ""}},
    )
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Ride not found.")
    logger.info("Admin %s removed review of ride %s", admin.id, ride_id)
    return Response(status_code=204)


# --- Users and drivers ---

@router.patch("/users/{account_id}")
async def update_user(account_id: str, update: AccountUpdate, request: Request, admin: Admin = Depends(get_current_admin)):
    """Update or block any customer, driver or admin."""
    db = request.app.mongodb
    object_id = to_object_id(account_id, "user ID")
    account = await find_account_by_id(db, object_id)
    if not account:
        raise HTTPException(status_code=404, detail="User or driver not found.")

    fields = update.model_dump(mode="json", exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update.")
    kind = AccountKind(account.role)
    if kind != AccountKind.DRIVER and DRIVER_ONLY_FIELDS & fields.keys():
        raise HTTPException(status_code=400, detail="Availability and vehicle details apply to drivers only.")
    if fields.get("is_blocked") and account.id == admin.id:
        raise HTTPException(status_code=400, detail="Admins cannot block themselves.")

    updated = await update_account(db, kind, object_id, fields)
    if not updated:
        raise HTTPException(status_code=404, detail="User or driver not found.")
    return updated.model_dump(exclude={"password_hash"})


@router.delete("/users/{account_id}", status_code=204)
async def delete_user(account_id: str, request: Request, admin: Admin = Depends(get_current_admin)):
    """Remove a customer or driver. Their rides stay behind with dangling references."""
    kind = await delete_account(
        request.app.mongodb,
        to_object_id(account_id, "user ID"),
        (AccountKind.CUSTOMER, AccountKind.DRIVER),
    )
    if kind is None:
        raise HTTPException(status_code=404, detail="User or driver not found.")
    logger.info("Admin %s deleted %s account %s", admin.id, kind.value, account_id)
    return Response(status_code=204)


# --- Rates ---

@router.get("/rates", response_model=RateRecord)
async def get_rate(request: Request, admin: Admin = Depends(get_current_admin)):
    return await get_current_rate(request.app.mongodb)


@router.put("/rates", response_model=RateRecord, status_code=201)
async def update_rate(update: RateUpdate, request: Request, admin: Admin = Depends(get_current_admin)):
    return await publish_rate(request.app.mongodb, update, admin.id)


@router.get("/rates/history", response_model=List[RateRecord])
async def get_rate_history(request: Request, admin: Admin = Depends(get_current_admin)):
    return await list_rates(request.app.mongodb)
