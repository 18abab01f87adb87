from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

class RideStatus(str, Enum):
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    EWALLET = "ewallet"

class RideCreate(BaseModel):
    pickup_location: str = Field(..., min_length=1)
    dropoff_location: str = Field(..., min_length=1)
    distance_km: float = Field(..., ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH

class RideComplete(BaseModel):
    final_fare: Optional[float] = Field(None, ge=0)

class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""

class Review(BaseModel):
    rating: int
    comment: str = ""
    reviewed_at: Optional[datetime] = None

class RideResponse(BaseModel):
    id: str
    customer_id: str
    driver_id: Optional[str] = None
    pickup_location: str
    dropoff_location: str
    distance_km: float
    estimated_fare: float
    final_fare: Optional[float] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    rate_version: int = 0
    currency: Optional[str] = None
    status: RideStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    review: Optional[Review] = None

class PaymentDetails(BaseModel):
    ride_id: str
    total_fare: float
    payment_method: PaymentMethod
    payment_status: str
    currency: str
