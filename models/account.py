from pydantic import BaseModel, Field, TypeAdapter, field_validator
from typing import Annotated, Any, Dict, Optional, Union
from enum import Enum

from models.driver import AvailabilityStatus, Driver, VehicleDetails
from models.user import Admin, Customer

class AccountKind(str, Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"

# Customers and admins share the users collection, distinguished by role.
COLLECTION_FOR_KIND = {
    AccountKind.CUSTOMER: "users",
    AccountKind.ADMIN: "users",
    AccountKind.DRIVER: "drivers",
}

Account = Annotated[Union[Customer, Driver, Admin], Field(discriminator="role")]

account_adapter = TypeAdapter(Account)

def account_from_doc(doc: Dict[str, Any]) -> Union[Customer, Driver, Admin]:
    return account_adapter.validate_python(doc)

class AccountUpdate(BaseModel):
    """Fields an administrator may change on any account."""
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    is_blocked: Optional[bool] = None
    availability_status: Optional[AvailabilityStatus] = None
    vehicle_details: Optional[VehicleDetails] = None

    @field_validator("name", "is_blocked", "availability_status")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v
