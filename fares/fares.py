# fares.py

from fastapi import APIRouter, HTTPException, Query, Request
from pymongo import DESCENDING
from pymongo.errors import PyMongoError
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
from typing import List, Optional
import logging
import os

from database.connection import DUPLICATE_KEY
from models.rate import FareEstimate, RateRecord, RateUpdate

logger = logging.getLogger(__name__)

DEFAULT_BASE_FARE = float(os.getenv("DEFAULT_BASE_FARE", "5.00"))
DEFAULT_PER_KM = float(os.getenv("DEFAULT_PER_KM", "2.50"))
FARE_CURRENCY = os.getenv("FARE_CURRENCY", "MYR")

CENT = Decimal("0.01")

router = APIRouter(prefix="/api/fares", tags=["fares"])


def round_fare(amount) -> float:
    """Round half-up to cents."""
    return float(Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP))


def estimate_fare(base_fare: float, per_km: float, distance_km: float) -> float:
    if distance_km < 0:
        raise ValueError("distance_km must not be negative")
    return round_fare(Decimal(str(base_fare)) + Decimal(str(per_km)) * Decimal(str(distance_km)))


def default_rate() -> RateRecord:
    return RateRecord(
        version=0,
        base_fare=DEFAULT_BASE_FARE,
        per_km=DEFAULT_PER_KM,
        currency=FARE_CURRENCY,
    )


async def get_current_rate(db) -> RateRecord:
    docs = await db["rates"].find().sort("version", DESCENDING).limit(1).to_list(length=1)
    if not docs:
        return default_rate()
    return RateRecord(**docs[0])


async def list_rates(db) -> List[RateRecord]:
    docs = await db["rates"].find().sort("version", DESCENDING).to_list(length=None)
    return [RateRecord(**doc) for doc in docs]


async def publish_rate(db, update: RateUpdate, admin_id: Optional[str] = None) -> RateRecord:
    """
    Store ``update`` as the next rate version. Two admins publishing at once
    collide on the unique version index; the loser gets a 409.
    """
    current = await get_current_rate(db)
    record = RateRecord(
        version=current.version + 1,
        base_fare=update.base_fare,
        per_km=update.per_km,
        currency=(update.currency or current.currency).upper(),
        created_at=datetime.utcnow(),
        created_by=admin_id,
    )
    try:
        await db["rates"].insert_one(record.model_dump())
    except PyMongoError as exc:
        if getattr(exc, "code", None) == DUPLICATE_KEY:
            raise HTTPException(status_code=409, detail="Rate was changed concurrently, retry with the latest version.")
        raise
    logger.info(
        "Rate version %d published by %s: base %.2f, per km %.2f",
        record.version, admin_id, record.base_fare, record.per_km,
    )
    return record


async def quote(db, distance_km: float) -> FareEstimate:
    rate = await get_current_rate(db)
    return FareEstimate(
        distance_km=distance_km,
        estimated_fare=estimate_fare(rate.base_fare, rate.per_km, distance_km),
        currency=rate.currency,
        rate_version=rate.version,
    )


@router.get("/estimate", response_model=FareEstimate)
async def get_fare_estimate(request: Request, distance_km: float = Query(..., ge=0)):
    return await quote(request.app.mongodb, distance_km)
