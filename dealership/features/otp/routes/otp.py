from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.features.auth.models.user import User
from dealership.features.auth.routes.auth import require_admin
from dealership.features.auth.services.auth_service import AuthService
from dealership.features.otp.schemas.otp import IDENTITY_PURPOSES, OtpRequest, OtpVerifyRequest
from dealership.features.otp.services.otp_service import OtpService
from dealership.features.otp.utils.responses import issuance_response, verification_failure_response
from dealership.platform.db.session import get_db
from dealership.platform.response import api_response

router = APIRouter(prefix="/otp", tags=["OTP"])


@router.post(
    "/generate",
    response_model=dict,
    summary="Generate an OTP",
    description="Issue a one-time code for an email and purpose, optionally storing a payload with it",
)
async def generate_otp(request: OtpRequest, db: AsyncSession = Depends(get_db)):
    """
    Login and Register codes are only issued through /auth, which checks
    credentials or registration details first.
    """
    if request.purpose in IDENTITY_PURPOSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Use /auth to request a {request.purpose} code",
        )

    result = await OtpService(db).generate(request.email, request.purpose, request.payload)
    return issuance_response(result)


@router.post(
    "/verify",
    response_model=dict,
    summary="Verify an OTP",
    description="Check a code; on success returns the session token or the stored payload",
)
async def verify_otp(request: OtpVerifyRequest, db: AsyncSession = Depends(get_db)):
    result = await OtpService(db, identity=AuthService(db)).verify(
        request.email, request.code, request.purpose
    )
    if not result.is_valid:
        return verification_failure_response(result)
    return api_response(data=result, message=result.message)


@router.get(
    "/validate",
    response_model=dict,
    summary="Check for an outstanding OTP",
    description="Whether an unused, unexpired code exists; does not consume an attempt",
)
async def validate_otp(
    email: str = Query(..., min_length=1),
    purpose: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    is_active = await OtpService(db).is_active(email, purpose)
    return api_response(data={"is_active": is_active}, message="OTP status retrieved")


@router.post("/purge", response_model=dict, summary="Purge expired and used OTPs")
async def purge_otps(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    count = await OtpService(db).purge_expired()
    return api_response(data={"deleted": count}, message=f"Purged {count} OTP records")
