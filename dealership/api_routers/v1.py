from fastapi import APIRouter

from dealership.features.auth.routes.auth import router as auth_router
from dealership.features.cars.routes.cars import router as cars_router
from dealership.features.customers.routes.customers import router as customers_router
from dealership.features.otp.routes.otp import router as otp_router
from dealership.features.purchase_requests.routes.purchase_requests import (
    router as purchase_requests_router,
)

api_router = APIRouter()

# Register all feature routes
api_router.include_router(auth_router)
api_router.include_router(otp_router)
api_router.include_router(customers_router)
api_router.include_router(cars_router)
api_router.include_router(purchase_requests_router)
