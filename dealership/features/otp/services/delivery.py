from datetime import datetime
from typing import Protocol

from dealership.platform.logger import get_logger

logger = get_logger("otp_delivery")


class DeliverySink(Protocol):
    async def deliver(self, email: str, purpose: str, code: str, expires_at: datetime) -> None: ...


class LogDeliverySink:
    """Writes issued codes to the application log instead of sending them."""

    async def deliver(self, email: str, purpose: str, code: str, expires_at: datetime) -> None:
        logger.info(
            "=== OTP DELIVERY SIMULATION ===\n"
            f"To: {email}\n"
            f"Purpose: {purpose}\n"
            f"OTP Code: {code}\n"
            f"Expires at: {expires_at:%Y-%m-%d %H:%M:%S} UTC\n"
            "==============================="
        )
