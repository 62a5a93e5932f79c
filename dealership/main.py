import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dealership.api_routers.v1 import api_router
from dealership.features.auth.services.auth_service import AuthService
from dealership.features.health.routes.health import router as health_router
from dealership.features.otp.services.sweeper import OtpCleanupSweeper
from dealership.middlewares.rate_limit import RateLimitMiddleware
from dealership.platform.config import settings
from dealership.platform.db.session import SessionLocal, init_db
from dealership.platform.exceptions import add_exception_handlers

# Configure logging to show INFO level messages
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def seed_admin() -> None:
    if not (settings.SEED_ADMIN_EMAIL and settings.SEED_ADMIN_PASSWORD):
        return
    async with SessionLocal() as db:
        admin = await AuthService(db).ensure_admin(
            settings.SEED_ADMIN_EMAIL, settings.SEED_ADMIN_PASSWORD
        )
        logger.info(f"Seed admin ready: {admin.email}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    await seed_admin()

    sweeper = OtpCleanupSweeper(SessionLocal, settings.OTP_CLEANUP_INTERVAL_SECONDS)
    app.state.otp_sweeper = sweeper
    if settings.OTP_SWEEPER_ENABLED:
        sweeper.start()
    try:
        yield
    finally:
        await sweeper.stop()


app = FastAPI(
    title="Car Dealership API",
    description="Inventory, customer accounts and OTP-confirmed purchase requests",
    version="1.0.0",
    lifespan=lifespan,
)


# Root endpoint for basic info
@app.get("/", tags=["Info"])
def root():
    return {
        "app_name": "Car Dealership API",
        "description": "Vehicle inventory and purchase requests with one-time-passcode confirmation.",
        "version": "1.0.0",
        "docs_url": "/docs",
        "api_base": "/api/v1",
    }


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)

add_exception_handlers(app)

app.include_router(health_router)
app.include_router(api_router, prefix="/api/v1")
