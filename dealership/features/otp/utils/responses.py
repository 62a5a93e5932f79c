from fastapi import status

from dealership.features.otp.schemas.otp import OtpResponse, OtpVerificationResult
from dealership.platform.response import api_response


def issuance_response(result: OtpResponse):
    return api_response(
        data=result,
        message=result.message,
        status_code=status.HTTP_200_OK if result.success else status.HTTP_400_BAD_REQUEST,
    )


def verification_failure_response(
    result: OtpVerificationResult, status_code: int = status.HTTP_400_BAD_REQUEST
):
    return api_response(data=result, message=result.message, status_code=status_code)
