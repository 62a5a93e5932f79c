from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

OTP_CODE_LENGTH = 6


class OtpPurpose(str, Enum):
    LOGIN = "Login"
    REGISTER = "Register"
    PURCHASE_REQUEST = "PurchaseRequest"
    UPDATE_VEHICLE = "UpdateVehicle"


IDENTITY_PURPOSES = frozenset({OtpPurpose.LOGIN.value, OtpPurpose.REGISTER.value})


class OtpFailure(str, Enum):
    VALIDATION_ERROR = "validation_error"
    ALREADY_PENDING = "already_pending"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    MISMATCH = "mismatch"
    ACCOUNT_NOT_FOUND = "account_not_found"
    INVALID_PAYLOAD = "invalid_payload"
    REGISTRATION_FAILED = "registration_failed"
    INFRASTRUCTURE_ERROR = "infrastructure_error"

    @property
    def is_terminal(self) -> bool:
        """Whether the failure leaves no way to complete the current OTP cycle.

        A mismatch keeps the record pending and an already-pending issuance
        leaves the outstanding record usable; everything else requires the
        caller to request a new code.
        """
        return self not in (OtpFailure.MISMATCH, OtpFailure.ALREADY_PENDING)


def _clean_purpose(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Purpose is required")
    return value


class OtpRequest(BaseModel):
    email: EmailStr
    purpose: str = Field(..., min_length=1, max_length=50)
    payload: Optional[str] = Field(None, max_length=4000)

    @field_validator("purpose")
    @classmethod
    def validate_purpose(cls, v: str) -> str:
        return _clean_purpose(v)


class OtpVerifyRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., min_length=OTP_CODE_LENGTH, max_length=OTP_CODE_LENGTH)
    purpose: str = Field(..., min_length=1, max_length=50)

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        if not v.isdigit() or not v.isascii():
            raise ValueError(f"Code must be {OTP_CODE_LENGTH} digits")
        return v

    @field_validator("purpose")
    @classmethod
    def validate_purpose(cls, v: str) -> str:
        return _clean_purpose(v)

    class Config:
        json_schema_extra = {
            "example": {
                "email": "alice@example.com",
                "code": "123456",
                "purpose": "PurchaseRequest",
            }
        }


class OtpResponse(BaseModel):
    success: bool
    message: str
    expires_at: Optional[datetime] = None
    attempts_remaining: Optional[int] = None
    reason: Optional[OtpFailure] = None


class OtpVerificationResult(BaseModel):
    is_valid: bool
    message: str
    token: Optional[str] = None
    user: Optional[Any] = None
    payload: Optional[str] = None
    attempts_remaining: Optional[int] = None
    reason: Optional[OtpFailure] = None

    @property
    def is_terminal(self) -> bool:
        return not self.is_valid and (self.reason is None or self.reason.is_terminal)
