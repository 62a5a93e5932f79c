from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from dealership.features.cars.schemas.car import CarOut
from dealership.features.purchase_requests.models.purchase_request import PurchaseRequestStatus


class PurchaseRequestCreate(BaseModel):
    car_id: int
    requested_price: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    message: Optional[str] = Field(None, max_length=1000)


class PurchaseRequestUpdate(BaseModel):
    status: PurchaseRequestStatus
    admin_notes: Optional[str] = Field(None, max_length=1000)


class CustomerSummary(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str

    class Config:
        from_attributes = True


class PurchaseRequestOut(BaseModel):
    id: int
    car_id: int
    customer_id: str
    requested_price: Decimal
    message: Optional[str] = None
    request_date: datetime
    status: PurchaseRequestStatus
    admin_notes: Optional[str] = None
    car: Optional[CarOut] = None
    customer: Optional[CustomerSummary] = None

    class Config:
        from_attributes = True


class PurchaseRequestEnvelope(BaseModel):
    """What a PurchaseRequest OTP carries until the code is verified."""

    request: PurchaseRequestCreate
    user_id: str
