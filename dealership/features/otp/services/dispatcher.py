from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from dealership.features.auth.schemas.auth import RegisterRequest
from dealership.features.otp.models.otp import OtpCode
from dealership.features.otp.schemas.otp import OtpFailure, OtpPurpose, OtpVerificationResult
from dealership.platform.logger import get_logger

logger = get_logger(__name__)

PurposeHandler = Callable[[OtpCode], Awaitable[OtpVerificationResult]]

LOGIN_ERROR_MESSAGE = "Error processing login. Please try again."
REGISTRATION_ERROR_MESSAGE = "Error processing registration. Please try again."


class IdentityProvider(Protocol):
    """Account operations the login and registration purposes complete with.

    ``create_account`` raises ``ValueError`` when the details are rejected,
    e.g. an email that is already registered. Storage failures surface as
    ``SQLAlchemyError``.
    """

    async def create_account(self, details: RegisterRequest) -> Any: ...

    async def find_account_by_email(self, email: str) -> Optional[Any]: ...

    def issue_session_token(self, account: Any) -> str: ...

    def to_public_view(self, account: Any) -> Any: ...


def _failure(message: str, reason: OtpFailure) -> OtpVerificationResult:
    return OtpVerificationResult(is_valid=False, message=message, reason=reason)


class PurposeDispatcher:
    """Completes a verified OTP according to its purpose.

    Login and Register complete an identity operation. Every other purpose,
    known or not, hands the stored payload back untouched for the caller to
    execute. Handlers never reopen the consumed record.
    """

    def __init__(self, identity: Optional[IdentityProvider] = None):
        self.identity = identity
        self._handlers: Dict[str, PurposeHandler] = {
            OtpPurpose.LOGIN.value: self._complete_login,
            OtpPurpose.REGISTER.value: self._complete_registration,
        }

    def register(self, purpose: str, handler: PurposeHandler) -> None:
        self._handlers[purpose] = handler

    async def dispatch(self, record: OtpCode) -> OtpVerificationResult:
        handler = self._handlers.get(record.purpose, self._return_payload)
        return await handler(record)

    async def _return_payload(self, record: OtpCode) -> OtpVerificationResult:
        return OtpVerificationResult(
            is_valid=True,
            message="OTP verified successfully.",
            payload=record.payload,
        )

    async def _complete_login(self, record: OtpCode) -> OtpVerificationResult:
        try:
            account = await self._require_identity().find_account_by_email(record.email)
        except SQLAlchemyError:
            logger.exception(f"Error completing login for {record.email}")
            return _failure(LOGIN_ERROR_MESSAGE, OtpFailure.INFRASTRUCTURE_ERROR)
        if account is None:
            return _failure("User not found.", OtpFailure.ACCOUNT_NOT_FOUND)

        return OtpVerificationResult(
            is_valid=True,
            message="Login successful.",
            token=self.identity.issue_session_token(account),
            user=self.identity.to_public_view(account),
        )

    async def _complete_registration(self, record: OtpCode) -> OtpVerificationResult:
        if not record.payload:
            return _failure("Invalid registration data.", OtpFailure.INVALID_PAYLOAD)

        try:
            details = RegisterRequest.model_validate_json(record.payload)
        except ValidationError:
            logger.warning(f"Undecodable registration payload for {record.email}")
            return _failure("Invalid registration data format.", OtpFailure.INVALID_PAYLOAD)

        identity = self._require_identity()
        try:
            account = await identity.create_account(details)
        except ValueError as e:
            logger.warning(f"Registration rejected for {record.email}: {e}")
            return _failure(REGISTRATION_ERROR_MESSAGE, OtpFailure.REGISTRATION_FAILED)
        except SQLAlchemyError:
            logger.exception(f"Error completing registration for {record.email}")
            return _failure(REGISTRATION_ERROR_MESSAGE, OtpFailure.INFRASTRUCTURE_ERROR)

        return OtpVerificationResult(
            is_valid=True,
            message="Registration successful.",
            token=identity.issue_session_token(account),
            user=identity.to_public_view(account),
        )

    def _require_identity(self) -> IdentityProvider:
        if self.identity is None:
            raise RuntimeError("No identity provider configured for identity purposes")
        return self.identity
