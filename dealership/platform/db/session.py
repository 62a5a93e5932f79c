from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from dealership.platform.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # file-backed sqlite serialises writers; wait for the lock instead of failing.
        # Connections are not pooled so none outlives the event loop that opened it.
        return {"connect_args": {"timeout": 30}, "poolclass": NullPool}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_timeout": 30,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    **_engine_options(settings.DATABASE_URL),
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False, autocommit=False)


async def get_db():
    async with SessionLocal() as session:
        yield session


async def init_db() -> None:
    from dealership.features.auth.models import user as _user  # noqa: F401
    from dealership.features.cars.models import car as _car  # noqa: F401
    from dealership.features.otp.models import otp as _otp  # noqa: F401
    from dealership.features.purchase_requests.models import (  # noqa: F401
        purchase_request as _purchase_request,
    )
    from dealership.platform.db.base import Base

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
