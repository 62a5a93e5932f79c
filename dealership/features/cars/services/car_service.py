from decimal import Decimal
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.features.cars.models.car import Car
from dealership.features.cars.schemas.car import CarCreate, CarUpdate
from dealership.platform.logger import get_logger

logger = get_logger(__name__)


class CarService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_cars(self) -> List[Car]:
        result = await self.db.execute(select(Car).order_by(Car.id))
        return list(result.scalars().all())

    async def list_available(self) -> List[Car]:
        result = await self.db.execute(
            select(Car).where(Car.is_available.is_(True)).order_by(Car.id)
        )
        return list(result.scalars().all())

    async def get_car(self, car_id: int) -> Optional[Car]:
        result = await self.db.execute(select(Car).where(Car.id == car_id))
        return result.scalar_one_or_none()

    async def search(
        self,
        make: Optional[str] = None,
        model: Optional[str] = None,
        min_year: Optional[int] = None,
        max_year: Optional[int] = None,
        max_price: Optional[Decimal] = None,
    ) -> List[Car]:
        query = select(Car)
        if make:
            query = query.where(func.lower(Car.make).contains(make.lower()))
        if model:
            query = query.where(func.lower(Car.model).contains(model.lower()))
        if min_year is not None:
            query = query.where(Car.year >= min_year)
        if max_year is not None:
            query = query.where(Car.year <= max_year)
        if max_price is not None:
            query = query.where(Car.price <= max_price)

        result = await self.db.execute(query.order_by(Car.id))
        return list(result.scalars().all())

    async def create_car(self, request: CarCreate) -> Car:
        car = Car(**request.model_dump())
        try:
            self.db.add(car)
            await self.db.commit()
            await self.db.refresh(car)
        except IntegrityError:
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="A car with this VIN already exists"
            )

        logger.info(f"Car created - id: {car.id}, vin: {car.vin}")
        return car

    async def update_car(self, car_id: int, request: CarUpdate) -> Optional[Car]:
        car = await self.get_car(car_id)
        if car is None:
            return None

        for field, value in request.model_dump().items():
            setattr(car, field, value)

        try:
            await self.db.commit()
            await self.db.refresh(car)
        except IntegrityError:
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="A car with this VIN already exists"
            )

        logger.info(f"Car updated - id: {car.id}")
        return car

    async def delete_car(self, car_id: int) -> bool:
        car = await self.get_car(car_id)
        if car is None:
            return False

        await self.db.delete(car)
        await self.db.commit()
        logger.info(f"Car deleted - id: {car_id}")
        return True
