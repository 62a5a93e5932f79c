from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.features.otp.models.otp import OtpCode
from dealership.features.otp.schemas.otp import OtpFailure, OtpResponse, OtpVerificationResult
from dealership.features.otp.services.delivery import DeliverySink, LogDeliverySink
from dealership.features.otp.services.dispatcher import IdentityProvider, PurposeDispatcher
from dealership.features.otp.services.store import OtpStore
from dealership.features.otp.services.verification import check_code
from dealership.features.otp.utils.generator import generate_otp_code
from dealership.platform.config import settings
from dealership.platform.logger import get_logger

logger = get_logger(__name__)

ALREADY_PENDING_MESSAGE = "An OTP has already been sent. Please wait before requesting another."


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how OTP timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class OtpService:
    def __init__(
        self,
        db: AsyncSession,
        identity: Optional[IdentityProvider] = None,
        delivery: Optional[DeliverySink] = None,
        clock: Callable[[], datetime] = utcnow,
        expire_minutes: int = settings.OTP_EXPIRE_MINUTES,
        max_attempts: int = settings.OTP_MAX_ATTEMPTS,
    ):
        self.db = db
        self.store = OtpStore(db)
        self.dispatcher = PurposeDispatcher(identity)
        self.delivery = delivery or LogDeliverySink()
        self.clock = clock
        self.window = timedelta(minutes=expire_minutes)
        self.max_attempts = max_attempts

    async def generate(self, email: str, purpose: str, payload: Optional[str] = None) -> OtpResponse:
        email = email.lower()
        now = self.clock()
        try:
            await self.store.purge(now)

            existing = await self.store.find_active(email, purpose, now)
            if existing is not None:
                await self.db.commit()
                return self._already_pending(existing)

            record = OtpCode(
                code=generate_otp_code(),
                email=email,
                purpose=purpose,
                payload=payload,
                created_at=now,
                expires_at=now + self.window,
                used=False,
                attempts=0,
                max_attempts=self.max_attempts,
                active=True,
            )
            try:
                await self.store.add(record)
                await self.db.commit()
            except IntegrityError:
                # a concurrent request created the record between our check and insert
                await self.db.rollback()
                existing = await self.store.find_active(email, purpose, now)
                if existing is None:
                    raise
                return self._already_pending(existing)
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Error generating OTP for {email} ({purpose})")
            return OtpResponse(
                success=False,
                message="Failed to generate OTP. Please try again.",
                reason=OtpFailure.INFRASTRUCTURE_ERROR,
            )

        await self.delivery.deliver(email, purpose, record.code, record.expires_at)
        logger.info(f"OTP issued for {email} ({purpose}), expires at {record.expires_at}")

        return OtpResponse(
            success=True,
            message="OTP sent successfully. Check the server log for the code.",
            expires_at=record.expires_at,
            attempts_remaining=record.max_attempts,
        )

    async def verify(self, email: str, code: str, purpose: str) -> OtpVerificationResult:
        email = email.lower()
        try:
            outcome = await check_code(self.store, email, code.strip(), purpose, self.clock())
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Error verifying OTP for {email} ({purpose})")
            return OtpVerificationResult(
                is_valid=False,
                message="Error verifying OTP. Please try again.",
                reason=OtpFailure.INFRASTRUCTURE_ERROR,
            )

        if not outcome.verified:
            logger.info(f"OTP verification failed for {email} ({purpose}): {outcome.failure.value}")
            return OtpVerificationResult(
                is_valid=False,
                message=outcome.message,
                attempts_remaining=outcome.attempts_remaining,
                reason=outcome.failure,
            )

        result = await self.dispatcher.dispatch(outcome.record)
        if result.is_valid:
            result.attempts_remaining = outcome.attempts_remaining
        return result

    async def is_active(self, email: str, purpose: str) -> bool:
        record = await self.store.find_active(email.lower(), purpose, self.clock())
        return record is not None

    async def purge_expired(self) -> int:
        try:
            count = await self.store.purge(self.clock())
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        if count:
            logger.info(f"Cleaned up {count} expired OTPs")
        return count

    def _already_pending(self, record: OtpCode) -> OtpResponse:
        return OtpResponse(
            success=False,
            message=ALREADY_PENDING_MESSAGE,
            expires_at=record.expires_at,
            attempts_remaining=record.attempts_remaining,
            reason=OtpFailure.ALREADY_PENDING,
        )
