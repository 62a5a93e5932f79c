from datetime import datetime
from typing import Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from dealership.features.otp.models.otp import OtpCode


class OtpStore:
    """Persistence for OTP records.

    Every state change is a conditional UPDATE guarded on the values the
    caller read, so two requests racing on the same (email, purpose) key
    cannot both win a transition. The session is owned by the caller, which
    decides when to commit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, record: OtpCode) -> OtpCode:
        self.db.add(record)
        await self.db.flush()
        return record

    async def find_active(self, email: str, purpose: str, now: datetime) -> Optional[OtpCode]:
        result = await self.db.execute(
            select(OtpCode)
            .where(
                OtpCode.email == email,
                OtpCode.purpose == purpose,
                OtpCode.used.is_(False),
                OtpCode.expires_at > now,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def find_unconsumed(self, email: str, purpose: str) -> Optional[OtpCode]:
        result = await self.db.execute(
            select(OtpCode)
            .where(
                OtpCode.email == email,
                OtpCode.purpose == purpose,
                OtpCode.used.is_(False),
            )
            .order_by(OtpCode.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def record_attempt(self, record: OtpCode) -> bool:
        """Increment attempts if nobody touched the record since it was read."""
        seen = record.attempts
        result = await self.db.execute(
            update(OtpCode)
            .where(
                OtpCode.id == record.id,
                OtpCode.used.is_(False),
                OtpCode.attempts == seen,
            )
            .values(attempts=seen + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        set_committed_value(record, "attempts", seen + 1)
        return True

    async def consume(self, record: OtpCode, now: datetime) -> bool:
        """Move the record to its terminal state. Only one caller can win."""
        result = await self.db.execute(
            update(OtpCode)
            .where(OtpCode.id == record.id, OtpCode.used.is_(False))
            .values(used=True, used_at=now, active=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        set_committed_value(record, "used", True)
        set_committed_value(record, "used_at", now)
        set_committed_value(record, "active", None)
        return True

    async def purge(self, now: datetime) -> int:
        result = await self.db.execute(
            delete(OtpCode)
            .where(or_(OtpCode.expires_at <= now, OtpCode.used.is_(True)))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
