# transitions.py

from bson import ObjectId
from pymongo import ReturnDocument
from datetime import datetime
from typing import Any, Dict, Optional, Set
import logging

from fares.fares import round_fare
from models.ride import RideStatus

logger = logging.getLogger(__name__)

RIDE_TRANSITIONS: Dict[RideStatus, Set[RideStatus]] = {
    RideStatus.REQUESTED: {RideStatus.ACCEPTED, RideStatus.CANCELLED},
    RideStatus.ACCEPTED: {RideStatus.STARTED, RideStatus.COMPLETED},
    RideStatus.STARTED: {RideStatus.COMPLETED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}

VERBS = {
    RideStatus.ACCEPTED: "accept",
    RideStatus.STARTED: "start",
    RideStatus.COMPLETED: "complete",
    RideStatus.CANCELLED: "cancel",
}


class RideError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class RideNotFound(RideError):
    status_code = 404

    def __init__(self):
        super().__init__("Ride not found.")


class NotRideParticipant(RideError):
    status_code = 403


class RideConflict(RideError):
    status_code = 409


def can_transition(current: RideStatus, target: RideStatus) -> bool:
    return target in RIDE_TRANSITIONS[current]


def sources_for(target: RideStatus) -> Set[RideStatus]:
    return {status for status, targets in RIDE_TRANSITIONS.items() if target in targets}


async def _explain_rejection(rides, ride_id: ObjectId, target: RideStatus, actor: Dict[str, Any]):
    ride = await rides.find_one({"_id": ride_id})
    if ride is None:
        raise RideNotFound()
    # An unassigned ride is a status conflict, not someone else's ride.
    for field, value in actor.items():
        owner = ride.get(field)
        if owner is not None and owner != value:
            if field == "customer_id":
                raise NotRideParticipant("You can only manage your own rides.")
            raise NotRideParticipant("This ride is not assigned to you.")

    current = RideStatus(ride["status"])
    if target == RideStatus.ACCEPTED and current != RideStatus.REQUESTED:
        raise RideConflict("Ride already accepted by another driver or no longer available.")
    if current == target:
        raise RideConflict(f"Ride is already {current.value}.")
    raise RideConflict(f"Cannot {VERBS[target]} ride in status '{current.value}'.")


async def transition_ride(
    rides,
    ride_id: ObjectId,
    target: RideStatus,
    actor: Optional[Dict[str, Any]] = None,
    fields: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Move a ride to ``target`` if its current status allows it and ``actor``
    (field/value pairs such as ``{"driver_id": ...}``) matches the ride.
    Returns the updated document or raises a ``RideError``.
    """
    actor = actor or {}
    now = datetime.utcnow()
    query = {
        "_id": ride_id,
        "status": {"$in": sorted(status.value for status in sources_for(target))},
        **actor,
    }
    update = {
        "$set": {
            "status": target.value,
            f"{target.value}_at": now,
            "updated_at": now,
            **(fields or {}),
        }
    }
    ride = await rides.find_one_and_update(query, update, return_document=ReturnDocument.AFTER)
    if ride is None:
        await _explain_rejection(rides, ride_id, target, actor)
    logger.info("Ride %s -> %s (%s)", ride_id, target.value, actor or "any")
    return ride


async def accept_ride(db, ride_id: ObjectId, driver_id: ObjectId) -> Dict[str, Any]:
    try:
        return await transition_ride(
            db["rides"], ride_id, RideStatus.ACCEPTED, fields={"driver_id": driver_id}
        )
    except RideConflict:
        logger.info("Driver %s lost the race for ride %s", driver_id, ride_id)
        raise


async def start_ride(db, ride_id: ObjectId, driver_id: ObjectId) -> Dict[str, Any]:
    return await transition_ride(
        db["rides"], ride_id, RideStatus.STARTED, actor={"driver_id": driver_id}
    )


async def cancel_ride(db, ride_id: ObjectId, customer_id: ObjectId) -> Dict[str, Any]:
    return await transition_ride(
        db["rides"], ride_id, RideStatus.CANCELLED, actor={"customer_id": customer_id}
    )


async def complete_ride(
    db, ride_id: ObjectId, driver_id: ObjectId, final_fare: Optional[float] = None
) -> Dict[str, Any]:
    """
    Complete a ride and credit the driver's wallet with the final fare.
    Without an explicit ``final_fare`` the estimated fare is charged.
    """
    if final_fare is None:
        # estimated_fare never changes after creation, so reading it
        # ahead of the conditional write is safe.
        ride = await db["rides"].find_one({"_id": ride_id}, {"estimated_fare": 1})
        if ride is None:
            raise RideNotFound()
        final_fare = ride["estimated_fare"]

    ride = await transition_ride(
        db["rides"],
        ride_id,
        RideStatus.COMPLETED,
        actor={"driver_id": driver_id},
        fields={"final_fare": round_fare(final_fare)},
    )
    await db["drivers"].update_one(
        {"_id": driver_id},
        {"$inc": {"wallet_balance": ride["final_fare"]}, "$set": {"updated_at": datetime.utcnow()}},
    )
    logger.info("Credited %.2f to driver %s for ride %s", ride["final_fare"], driver_id, ride_id)
    return ride


async def add_review(
    db, ride_id: ObjectId, customer_id: ObjectId, rating: int, comment: str = ""
) -> Dict[str, Any]:
    """Attach the one review a completed ride may carry."""
    now = datetime.utcnow()
    review = {"rating": rating, "comment": comment, "reviewed_at": now}
    rides = db["rides"]
    ride = await rides.find_one_and_update(
        {
            "_id": ride_id,
            "customer_id": customer_id,
            "status": RideStatus.COMPLETED.value,
            "review": {"$exists": False},
        },
        {"$set": {"review": review, "updated_at": now}},
        return_document=ReturnDocument.AFTER,
    )
    if ride is not None:
        logger.info("Ride %s reviewed with rating %d", ride_id, rating)
        return ride

    ride = await rides.find_one({"_id": ride_id})
    if ride is None:
        raise RideNotFound()
    if ride["customer_id"] != customer_id:
        raise NotRideParticipant("You can only review your own rides.")
    if ride["status"] != RideStatus.COMPLETED.value:
        raise RideConflict("Can only review completed rides.")
    raise RideConflict("Ride has already been reviewed.")
