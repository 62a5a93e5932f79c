from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.features.auth.models.user import User
from dealership.features.cars.models.car import Car
from dealership.features.purchase_requests.models.purchase_request import (
    PurchaseRequest,
    PurchaseRequestStatus,
)
from dealership.features.purchase_requests.schemas.purchase_request import (
    PurchaseRequestCreate,
    PurchaseRequestUpdate,
)
from dealership.platform.logger import get_logger

logger = get_logger(__name__)


class PurchaseRequestService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_all(self) -> List[PurchaseRequest]:
        result = await self.db.execute(select(PurchaseRequest).order_by(PurchaseRequest.id))
        return list(result.scalars().all())

    async def list_pending(self) -> List[PurchaseRequest]:
        result = await self.db.execute(
            select(PurchaseRequest)
            .where(PurchaseRequest.status == PurchaseRequestStatus.PENDING)
            .order_by(PurchaseRequest.id)
        )
        return list(result.scalars().all())

    async def list_for_customer(self, customer_id: str) -> List[PurchaseRequest]:
        result = await self.db.execute(
            select(PurchaseRequest)
            .where(PurchaseRequest.customer_id == customer_id)
            .order_by(PurchaseRequest.id)
        )
        return list(result.scalars().all())

    async def get(self, request_id: int) -> Optional[PurchaseRequest]:
        # populate_existing reloads car/customer for objects already in the session
        result = await self.db.execute(
            select(PurchaseRequest)
            .where(PurchaseRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, request: PurchaseRequestCreate, customer_id: str) -> PurchaseRequest:
        car = await self.db.get(Car, request.car_id)
        if car is None or not car.is_available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Car is not available for purchase",
            )

        customer = await self.db.get(User, customer_id)
        if customer is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

        purchase_request = PurchaseRequest(
            car_id=request.car_id,
            customer_id=customer_id,
            requested_price=request.requested_price,
            message=request.message,
            request_date=datetime.utcnow(),
            status=PurchaseRequestStatus.PENDING,
        )
        self.db.add(purchase_request)
        await self.db.commit()

        logger.info(
            f"Purchase request created - id: {purchase_request.id}, car: {car.id}, customer: {customer_id}"
        )
        return await self.get(purchase_request.id)

    async def update(self, request_id: int, request: PurchaseRequestUpdate) -> Optional[PurchaseRequest]:
        purchase_request = await self.get(request_id)
        if purchase_request is None:
            return None

        purchase_request.status = request.status
        purchase_request.admin_notes = request.admin_notes

        if request.status == PurchaseRequestStatus.APPROVED and purchase_request.car is not None:
            purchase_request.car.is_available = False
            purchase_request.car.date_sold = datetime.utcnow()

        await self.db.commit()
        logger.info(f"Purchase request {request_id} set to {request.status.value}")
        return await self.get(request_id)

    async def delete(self, request_id: int) -> bool:
        purchase_request = await self.get(request_id)
        if purchase_request is None:
            return False

        await self.db.delete(purchase_request)
        await self.db.commit()
        return True
