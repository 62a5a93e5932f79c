from dealership.features.otp.schemas.otp import (
    IDENTITY_PURPOSES,
    OTP_CODE_LENGTH,
    OtpFailure,
    OtpPurpose,
    OtpRequest,
    OtpResponse,
    OtpVerificationResult,
    OtpVerifyRequest,
)

__all__ = [
    "IDENTITY_PURPOSES",
    "OTP_CODE_LENGTH",
    "OtpFailure",
    "OtpPurpose",
    "OtpRequest",
    "OtpResponse",
    "OtpVerificationResult",
    "OtpVerifyRequest",
]
