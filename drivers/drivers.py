# drivers.py

from fastapi import APIRouter, Depends, Request
from datetime import datetime
from typing import List
import logging

from accounts.accounts import create_account
from auth.dependencies import get_current_driver
from auth.password_handler import hash_password
from database.connection import serialize_doc, to_object_id
from models.account import AccountKind
from models.driver import AvailabilityStatus, AvailabilityUpdate, Driver, DriverCreate, DriverResponse
from models.ride import RideResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/drivers", tags=["drivers"])


@router.post("", response_model=DriverResponse, status_code=201)
async def register_driver(driver: DriverCreate, request: Request):
    driver_doc = await create_account(request.app.mongodb, AccountKind.DRIVER, {
        "email": driver.email,
        "password_hash": hash_password(driver.password),
        "name": driver.name,
        "phone": driver.phone,
        "vehicle_details": driver.vehicle_details.model_dump(),
        "availability_status": AvailabilityStatus.OFFLINE.value,
        "wallet_balance": 0.0,
    })
    return DriverResponse(**serialize_doc(driver_doc))


@router.get("/me", response_model=DriverResponse)
async def get_current_driver_info(current_driver: Driver = Depends(get_current_driver)):
    """Returns the authenticated driver, including the wallet balance."""
    return current_driver


@router.patch("/me/availability", response_model=DriverResponse)
async def update_availability(update: AvailabilityUpdate, request: Request, current_driver: Driver = Depends(get_current_driver)):
    now = datetime.utcnow()
    await request.app.mongodb["drivers"].update_one(
        {"_id": to_object_id(current_driver.id)},
        {"$set": {"availability_status": update.availability_status.value, "updated_at": now}},
    )
    logger.info("Driver %s is now %s", current_driver.id, update.availability_status.value)
    return current_driver.model_copy(
        update={"availability_status": update.availability_status, "updated_at": now}
    )


@router.get("/me/rides", response_model=List[RideResponse])
async def get_assigned_rides(request: Request, current_driver: Driver = Depends(get_current_driver)):
    cursor = request.app.mongodb["rides"].find(
        {"driver_id": to_object_id(current_driver.id)}
    ).sort("accepted_at", -1)
    rides = await cursor.to_list(length=None)
    return [RideResponse(**serialize_doc(ride)) for ride in rides]
