from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CarBase(BaseModel):
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1886, le=2100)
    color: str = Field(..., min_length=1, max_length=50)
    vin: str = Field(..., min_length=1, max_length=17)
    price: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)
    mileage: int = Field(0, ge=0)
    transmission: Optional[str] = Field(None, max_length=50)
    fuel_type: Optional[str] = Field(None, max_length=50)


class CarCreate(CarBase):
    pass


class CarUpdate(CarBase):
    is_available: bool = True


class CarOut(CarBase):
    id: int
    is_available: bool
    date_added: datetime
    date_sold: Optional[datetime] = None

    class Config:
        from_attributes = True


class VehicleUpdateEnvelope(BaseModel):
    """What an UpdateVehicle OTP carries until the code is verified."""

    id: int
    update: CarUpdate
