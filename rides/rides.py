# rides.py

from fastapi import APIRouter, Depends, HTTPException, Request
from datetime import datetime
from typing import List, Optional, Union
import logging

from auth.dependencies import get_current_account, get_current_customer, get_current_driver
from database.connection import serialize_doc, to_object_id
from fares.fares import FARE_CURRENCY, estimate_fare, get_current_rate
from models.driver import Driver
from models.ride import (
    PaymentDetails,
    ReviewCreate,
    RideComplete,
    RideCreate,
    RideResponse,
    RideStatus,
)
from models.user import Admin, Customer
from rides.transitions import (
    accept_ride,
    add_review,
    cancel_ride,
    complete_ride,
    start_ride,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rides", tags=["rides"])


def ride_response(doc: dict) -> RideResponse:
    return RideResponse(**serialize_doc(doc))


def ensure_can_view(account: Union[Customer, Driver, Admin], ride: dict) -> None:
    """Customers see their own rides, drivers their assigned and open ones."""
    if account.role == "admin":
        return
    if account.role == "customer" and str(ride["customer_id"]) == account.id:
        return
    if account.role == "driver" and (
        ride["status"] == RideStatus.REQUESTED.value
        or str(ride.get("driver_id")) == account.id
    ):
        return
    raise HTTPException(status_code=403, detail="You are not allowed to view this ride.")


async def get_ride_or_404(request: Request, ride_id: str) -> dict:
    ride = await request.app.mongodb["rides"].find_one({"_id": to_object_id(ride_id, "ride ID")})
    if not ride:
        raise HTTPException(status_code=404, detail="Ride not found.")
    return ride


# --- Customer endpoints ---

@router.post("", response_model=RideResponse, status_code=201)
async def request_ride(ride_data: RideCreate, request: Request, customer: Customer = Depends(get_current_customer)):
    """Request a ride priced with the current rate record."""
    db = request.app.mongodb
    rate = await get_current_rate(db)
    now = datetime.utcnow()
    ride_doc = {
        "customer_id": to_object_id(customer.id),
        "driver_id": None,
        "pickup_location": ride_data.pickup_location,
        "dropoff_location": ride_data.dropoff_location,
        "distance_km": ride_data.distance_km,
        "estimated_fare": estimate_fare(rate.base_fare, rate.per_km, ride_data.distance_km),
        "final_fare": None,
        "payment_method": ride_data.payment_method.value,
        "rate_version": rate.version,
        "currency": rate.currency,
        "status": RideStatus.REQUESTED.value,
        "created_at": now,
        "updated_at": now,
        "accepted_at": None,
        "started_at": None,
        "completed_at": None,
        "cancelled_at": None,
    }
    result = await db["rides"].insert_one(ride_doc)
    ride_doc["_id"] = result.inserted_id
    logger.info("Ride %s requested by customer %s", result.inserted_id, customer.id)
    return ride_response(ride_doc)


@router.patch("/{ride_id}/cancel", response_model=RideResponse)
async def customer_cancel_ride(ride_id: str, request: Request, customer: Customer = Depends(get_current_customer)):
    ride = await cancel_ride(
        request.app.mongodb, to_object_id(ride_id, "ride ID"), to_object_id(customer.id)
    )
    return ride_response(ride)


@router.post("/{ride_id}/review", response_model=RideResponse, status_code=201)
async def review_ride(ride_id: str, review: ReviewCreate, request: Request, customer: Customer = Depends(get_current_customer)):
    ride = await add_review(
        request.app.mongodb,
        to_object_id(ride_id, "ride ID"),
        to_object_id(customer.id),
        review.rating,
        review.comment,
    )
    return ride_response(ride)


# --- Driver endpoints ---

@router.get("/available", response_model=List[RideResponse])
async def get_available_rides(request: Request, driver: Driver = Depends(get_current_driver)):
    cursor = request.app.mongodb["rides"].find(
        {"status": RideStatus.REQUESTED.value}
    ).sort("created_at", 1)
    rides = await cursor.to_list(length=None)
    return [ride_response(ride) for ride in rides]


@router.patch("/{ride_id}/accept", response_model=RideResponse)
async def driver_accept_ride(ride_id: str, request: Request, driver: Driver = Depends(get_current_driver)):
    ride = await accept_ride(
        request.app.mongodb, to_object_id(ride_id, "ride ID"), to_object_id(driver.id)
    )
    return ride_response(ride)


@router.patch("/{ride_id}/start", response_model=RideResponse)
async def driver_start_ride(ride_id: str, request: Request, driver: Driver = Depends(get_current_driver)):
    ride = await start_ride(
        request.app.mongodb, to_object_id(ride_id, "ride ID"), to_object_id(driver.id)
    )
    return ride_response(ride)


@router.patch("/{ride_id}/complete", response_model=RideResponse)
async def driver_complete_ride(
    ride_id: str,
    request: Request,
    completion: Optional[RideComplete] = None,
    driver: Driver = Depends(get_current_driver),
):
    final_fare = completion.final_fare if completion else None
    ride = await complete_ride(
        request.app.mongodb, to_object_id(ride_id, "ride ID"), to_object_id(driver.id), final_fare
    )
    return ride_response(ride)


# --- Shared endpoints ---

@router.get("/{ride_id}", response_model=RideResponse)
async def get_ride(ride_id: str, request: Request, account=Depends(get_current_account)):
    ride = await get_ride_or_404(request, ride_id)
    ensure_can_view(account, ride)
    return ride_response(ride)


@router.get("/{ride_id}/payment", response_model=PaymentDetails)
async def get_ride_payment(ride_id: str, request: Request, account=Depends(get_current_account)):
    ride = await get_ride_or_404(request, ride_id)
    ensure_can_view(account, ride)
    status = ride["status"]
    if status == RideStatus.COMPLETED.value:
        payment_status = "completed"
    elif status == RideStatus.CANCELLED.value:
        payment_status = "void"
    else:
        payment_status = "pending"

    return PaymentDetails(
        ride_id=str(ride["_id"]),
        total_fare=ride["final_fare"] if ride.get("final_fare") is not None else ride["estimated_fare"],
        payment_method=ride.get("payment_method", "cash"),
        payment_status=payment_status,
        currency=ride.get("currency", FARE_CURRENCY),
    )
