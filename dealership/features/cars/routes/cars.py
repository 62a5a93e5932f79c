from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.features.auth.models.user import User
from dealership.features.auth.routes.auth import require_admin
from dealership.features.cars.schemas.car import CarCreate, CarOut, CarUpdate, VehicleUpdateEnvelope
from dealership.features.cars.services.car_service import CarService
from dealership.features.otp.schemas.otp import OtpPurpose, OtpVerifyRequest
from dealership.features.otp.services.otp_service import OtpService
from dealership.features.otp.utils.responses import issuance_response, verification_failure_response
from dealership.platform.db.session import get_db
from dealership.platform.logger import get_logger
from dealership.platform.response import api_response

logger = get_logger(__name__)

router = APIRouter(prefix="/cars", tags=["Cars"])


def _out(cars):
    return [CarOut.model_validate(car) for car in cars]


@router.get("", response_model=dict, summary="List all cars")
async def list_cars(db: AsyncSession = Depends(get_db)):
    cars = await CarService(db).list_cars()
    return api_response(data=_out(cars), message="Cars retrieved")


@router.get("/available", response_model=dict, summary="List cars available for purchase")
async def list_available_cars(db: AsyncSession = Depends(get_db)):
    cars = await CarService(db).list_available()
    return api_response(data=_out(cars), message="Available cars retrieved")


@router.get("/search", response_model=dict, summary="Search the inventory")
async def search_cars(
    make: Optional[str] = Query(None),
    model: Optional[str] = Query(None),
    min_year: Optional[int] = Query(None, alias="minYear"),
    max_year: Optional[int] = Query(None, alias="maxYear"),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice"),
    db: AsyncSession = Depends(get_db),
):
    cars = await CarService(db).search(make, model, min_year, max_year, max_price)
    return api_response(data=_out(cars), message="Search results")


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Add a car")
async def create_car(
    request: CarCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    car = await CarService(db).create_car(request)
    return api_response(
        data=CarOut.model_validate(car),
        message="Car created",
        status_code=status.HTTP_201_CREATED,
    )


@router.post(
    "/{car_id}/update/request-otp",
    response_model=dict,
    summary="Request a vehicle update OTP",
    description="Hold the update until the code sent to the admin's email is verified",
)
async def request_update_vehicle_otp(
    car_id: int,
    request: CarUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    envelope = VehicleUpdateEnvelope(id=car_id, update=request)
    result = await OtpService(db).generate(
        email=admin.email,
        purpose=OtpPurpose.UPDATE_VEHICLE.value,
        payload=envelope.model_dump_json(),
    )
    return issuance_response(result)


@router.put(
    "/update/verify-otp",
    response_model=dict,
    summary="Apply a vehicle update",
    description="Verify the code and apply the update stored with it",
)
async def update_car_with_otp(
    request: OtpVerifyRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await OtpService(db).verify(
        email=admin.email, code=request.code, purpose=OtpPurpose.UPDATE_VEHICLE.value
    )
    if not result.is_valid:
        return verification_failure_response(result)

    if not result.payload:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid update data.")
    try:
        envelope = VehicleUpdateEnvelope.model_validate_json(result.payload)
    except ValidationError:
        logger.warning(f"Undecodable vehicle update payload for {admin.email}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid update data format."
        )

    car = await CarService(db).update_car(envelope.id, envelope.update)
    if car is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Car not found")
    return api_response(data=CarOut.model_validate(car), message="Car updated")


@router.get("/{car_id}", response_model=dict, summary="Get a car")
async def get_car(car_id: int, db: AsyncSession = Depends(get_db)):
    car = await CarService(db).get_car(car_id)
    if car is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Car not found")
    return api_response(data=CarOut.model_validate(car), message="Car retrieved")


@router.delete("/{car_id}", response_model=dict, summary="Remove a car")
async def delete_car(
    car_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await CarService(db).delete_car(car_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Car not found")
    return api_response(message="Car deleted")
