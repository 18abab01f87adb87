from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime
from enum import Enum

class AvailabilityStatus(str, Enum):
    OFFLINE = "offline"
    AVAILABLE = "available"
    BUSY = "busy"

class VehicleDetails(BaseModel):
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    plate_number: str = Field(..., min_length=1)
    color: Optional[str] = None

class DriverCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    vehicle_details: VehicleDetails

class DriverResponse(BaseModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    role: str = "driver"
    vehicle_details: Optional[VehicleDetails] = None
    availability_status: AvailabilityStatus = AvailabilityStatus.OFFLINE
    wallet_balance: float = 0.0
    is_blocked: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class Driver(DriverResponse):
    role: Literal["driver"] = "driver"
    password_hash: str

class AvailabilityUpdate(BaseModel):
    availability_status: AvailabilityStatus
