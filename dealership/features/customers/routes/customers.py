from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.features.auth.models.user import User
from dealership.features.auth.routes.auth import require_admin
from dealership.features.auth.schemas.auth import UpdateUserRequest
from dealership.features.auth.services.auth_service import AuthService
from dealership.platform.db.session import get_db
from dealership.platform.response import api_response

router = APIRouter(prefix="/customers", tags=["Customers"])


async def _require_customer(auth_service: AuthService, customer_id: str) -> User:
    customer = await auth_service.get_customer(customer_id)
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer


@router.get("", response_model=dict, summary="List customers")
async def list_customers(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    auth_service = AuthService(db)
    customers = await auth_service.list_customers()
    return api_response(
        data=[auth_service.to_public_view(customer) for customer in customers],
        message="Customers retrieved",
    )


@router.get(
    "/search",
    response_model=dict,
    summary="Search customers",
    description="Case-insensitive substring match on first or last name and on email",
)
async def search_customers(
    name: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    auth_service = AuthService(db)
    customers = await auth_service.search_customers(name=name, email=email)
    return api_response(
        data=[auth_service.to_public_view(customer) for customer in customers],
        message="Customers retrieved",
    )


@router.get("/{customer_id}", response_model=dict, summary="Get a customer")
async def get_customer(
    customer_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    auth_service = AuthService(db)
    customer = await _require_customer(auth_service, customer_id)
    return api_response(data=auth_service.to_public_view(customer), message="Customer retrieved")


@router.put("/{customer_id}", response_model=dict, summary="Update a customer")
async def update_customer(
    customer_id: str,
    request: UpdateUserRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    auth_service = AuthService(db)
    await _require_customer(auth_service, customer_id)
    customer = await auth_service.update_user(customer_id, request)
    return api_response(data=auth_service.to_public_view(customer), message="Customer updated")


@router.delete("/{customer_id}", response_model=dict, summary="Delete a customer")
async def delete_customer(
    customer_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    auth_service = AuthService(db)
    await _require_customer(auth_service, customer_id)
    await auth_service.delete_user(customer_id)
    return api_response(message="Customer deleted")
