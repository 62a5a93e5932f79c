from dealership.features.otp.services.delivery import DeliverySink, LogDeliverySink
from dealership.features.otp.services.dispatcher import IdentityProvider, PurposeDispatcher
from dealership.features.otp.services.otp_service import OtpService, utcnow
from dealership.features.otp.services.store import OtpStore
from dealership.features.otp.services.sweeper import OtpCleanupSweeper

__all__ = [
    "DeliverySink",
    "IdentityProvider",
    "LogDeliverySink",
    "OtpCleanupSweeper",
    "OtpService",
    "OtpStore",
    "PurposeDispatcher",
    "utcnow",
]
