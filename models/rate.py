from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class RateUpdate(BaseModel):
    base_fare: float = Field(..., ge=0)
    per_km: float = Field(..., ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)

class RateRecord(BaseModel):
    version: int
    base_fare: float
    per_km: float
    currency: str
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

class FareEstimate(BaseModel):
    distance_km: float
    estimated_fare: float
    currency: str
    rate_version: int
