from fastapi import APIRouter, HTTPException, Request, Depends
from typing import Any, Dict, List

from accounts.accounts import create_account, find_account_by_id
from auth.dependencies import get_current_account, get_current_customer
from auth.password_handler import hash_password
from database.connection import serialize_doc, to_object_id
from models.account import AccountKind
from models.ride import RideResponse
from models.user import Customer, UserCreate, UserResponse

router = APIRouter(prefix="/api/users", tags=["users"])

@router.post("", response_model=UserResponse, status_code=201)
async def register_customer(user: UserCreate, request: Request):
    user_doc = await create_account(request.app.mongodb, AccountKind.CUSTOMER, {
        "email": user.email,
        "password_hash": hash_password(user.password),
        "name": user.name,
        "phone": user.phone,
    })
    return UserResponse(**serialize_doc(user_doc))

@router.get("/me", response_model=UserResponse)
async def get_current_customer_info(customer: Customer = Depends(get_current_customer)):
    return customer

@router.get("/me/rides", response_model=List[RideResponse])
async def get_my_rides(request: Request, customer: Customer = Depends(get_current_customer)):
    cursor = request.app.mongodb["rides"].find(
        {"customer_id": to_object_id(customer.id)}
    ).sort("created_at", -1)
    rides = await cursor.to_list(length=None)
    return [RideResponse(**serialize_doc(ride)) for ride in rides]

@router.get("/{account_id}")
async def get_account_profile(account_id: str, request: Request, account=Depends(get_current_account)) -> Dict[str, Any]:
    """Profile of any customer, driver or admin, without the password hash."""
    found = await find_account_by_id(request.app.mongodb, to_object_id(account_id, "user ID"))
    if not found:
        raise HTTPException(status_code=404, detail="User not found.")
    profile = found.model_dump(exclude={"password_hash"})
    if account.role != "admin" and account.id != found.id:
        profile.pop("wallet_balance", None)
    return profile
