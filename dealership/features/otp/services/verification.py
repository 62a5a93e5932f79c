import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dealership.features.otp.models.otp import OtpCode
from dealership.features.otp.schemas.otp import OtpFailure
from dealership.features.otp.services.store import OtpStore

NOT_FOUND_MESSAGE = "Invalid or expired OTP."
EXPIRED_MESSAGE = "OTP has expired. Please request a new one."
EXHAUSTED_MESSAGE = "Maximum attempts exceeded. Please request a new OTP."


@dataclass
class VerificationOutcome:
    message: str
    record: Optional[OtpCode] = None
    failure: Optional[OtpFailure] = None
    attempts_remaining: Optional[int] = None

    @property
    def verified(self) -> bool:
        return self.failure is None


async def check_code(
    store: OtpStore, email: str, code: str, purpose: str, now: datetime
) -> VerificationOutcome:
    """Run one verification attempt against the unconsumed record for a key.

    States: Pending -> Expired -> Consumed, with Consumed terminal. Expiry and
    attempt exhaustion are checked before the code is compared, so a correct
    code never overrides them. The attempt counter is bumped before the
    comparison, which means the successful try is counted too.

    Lost compare-and-set races re-read the record and start over. Each lost
    race means another caller bumped the counter or consumed the record, both
    bounded by max_attempts, so the loop terminates.
    """
    while True:
        record = await store.find_unconsumed(email, purpose)
        if record is None:
            return VerificationOutcome(message=NOT_FOUND_MESSAGE, failure=OtpFailure.NOT_FOUND)

        if record.expires_at <= now:
            await store.consume(record, now)
            return VerificationOutcome(message=EXPIRED_MESSAGE, failure=OtpFailure.EXPIRED)

        if record.attempts >= record.max_attempts:
            await store.consume(record, now)
            return VerificationOutcome(
                message=EXHAUSTED_MESSAGE,
                failure=OtpFailure.ATTEMPTS_EXHAUSTED,
                attempts_remaining=0,
            )

        if not await store.record_attempt(record):
            continue

        if not secrets.compare_digest(record.code.encode(), code.encode()):
            remaining = record.attempts_remaining
            if remaining == 0:
                # Left pending; the next verify consumes it as exhausted.
                return VerificationOutcome(
                    message=EXHAUSTED_MESSAGE,
                    failure=OtpFailure.ATTEMPTS_EXHAUSTED,
                    attempts_remaining=0,
                )
            return VerificationOutcome(
                message=f"Invalid OTP. {remaining} attempts remaining.",
                failure=OtpFailure.MISMATCH,
                attempts_remaining=remaining,
            )

        if not await store.consume(record, now):
            return VerificationOutcome(message=NOT_FOUND_MESSAGE, failure=OtpFailure.NOT_FOUND)

        return VerificationOutcome(
            message="OTP verified successfully.",
            record=record,
            attempts_remaining=record.attempts_remaining,
        )
