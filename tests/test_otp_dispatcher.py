from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from dealership.features.auth.schemas.auth import RegisterRequest
from dealership.features.otp.models.otp import OtpCode
from dealership.features.otp.schemas.otp import OtpFailure, OtpPurpose, OtpVerificationResult
from dealership.features.otp.services.dispatcher import PurposeDispatcher


class FakeIdentity:
    """In-memory identity provider recording what the dispatcher asks of it."""

    def __init__(self, accounts=None, reject_with=None):
        self.accounts = dict(accounts or {})
        self.reject_with = reject_with
        self.created = []

    async def create_account(self, details: RegisterRequest):
        if self.reject_with:
            raise ValueError(self.reject_with)
        account = {"email": details.email, "first_name": details.first_name}
        self.accounts[details.email] = account
        self.created.append(details)
        return account

    async def find_account_by_email(self, email):
        return self.accounts.get(email)

    def issue_session_token(self, account):
        return f"token-for-{account['email']}"

    def to_public_view(self, account):
        return {"email": account["email"]}


def consumed_record(purpose, email="jane@example.com", payload=None):
    now = datetime(2030, 1, 1, 12, 0, 0)
    return OtpCode(
        id=1,
        code="123456",
        email=email,
        purpose=purpose,
        payload=payload,
        created_at=now,
        expires_at=now + timedelta(minutes=5),
        used=True,
        used_at=now,
        attempts=1,
        max_attempts=3,
        active=None,
    )


REGISTRATION = RegisterRequest(
    email="jane@example.com",
    password="SecurePass123",
    first_name="Jane",
    last_name="Doe",
).model_dump_json()


@pytest.mark.asyncio
async def test_login_issues_token_for_existing_account():
    identity = FakeIdentity(accounts={"jane@example.com": {"email": "jane@example.com"}})

    result = await PurposeDispatcher(identity).dispatch(consumed_record(OtpPurpose.LOGIN.value))

    assert result.is_valid is True
    assert result.message == "Login successful."
    assert result.token == "token-for-jane@example.com"
    assert result.user == {"email": "jane@example.com"}


@pytest.mark.asyncio
async def test_login_for_unknown_account():
    result = await PurposeDispatcher(FakeIdentity()).dispatch(consumed_record(OtpPurpose.LOGIN.value))

    assert result.is_valid is False
    assert result.reason == OtpFailure.ACCOUNT_NOT_FOUND
    assert result.message == "User not found."
    assert result.token is None


@pytest.mark.asyncio
async def test_registration_creates_account_from_payload():
    identity = FakeIdentity()

    result = await PurposeDispatcher(identity).dispatch(
        consumed_record(OtpPurpose.REGISTER.value, payload=REGISTRATION)
    )

    assert result.is_valid is True
    assert result.message == "Registration successful."
    assert result.token == "token-for-jane@example.com"
    assert identity.created[0].last_name == "Doe"
    assert identity.created[0].password == "SecurePass123"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, message",
    [
        (None, "Invalid registration data."),
        ("", "Invalid registration data."),
        ("{not json", "Invalid registration data format."),
        ('{"email": "jane@example.com"}', "Invalid registration data format."),
    ],
)
async def test_registration_with_bad_payload(payload, message):
    identity = FakeIdentity()

    result = await PurposeDispatcher(identity).dispatch(
        consumed_record(OtpPurpose.REGISTER.value, payload=payload)
    )

    assert result.is_valid is False
    assert result.reason == OtpFailure.INVALID_PAYLOAD
    assert result.message == message
    assert identity.created == []


@pytest.mark.asyncio
async def test_registration_rejected_by_identity_provider():
    identity = FakeIdentity(reject_with="Email already registered")

    result = await PurposeDispatcher(identity).dispatch(
        consumed_record(OtpPurpose.REGISTER.value, payload=REGISTRATION)
    )

    assert result.is_valid is False
    assert result.reason == OtpFailure.REGISTRATION_FAILED
    assert result.message == "Error processing registration. Please try again."
    assert result.is_terminal is True


class UnavailableIdentity(FakeIdentity):
    """Identity provider whose database is down."""

    async def create_account(self, details):
        raise OperationalError("INSERT INTO users", {}, Exception("database is locked"))

    async def find_account_by_email(self, email):
        raise OperationalError("SELECT users", {}, Exception("database is locked"))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "purpose, payload, message",
    [
        (OtpPurpose.LOGIN.value, None, "Error processing login. Please try again."),
        (OtpPurpose.REGISTER.value, REGISTRATION, "Error processing registration. Please try again."),
    ],
)
async def test_identity_storage_failure_is_reported_not_raised(purpose, payload, message):
    result = await PurposeDispatcher(UnavailableIdentity()).dispatch(consumed_record(purpose, payload=payload))

    assert result.is_valid is False
    assert result.reason == OtpFailure.INFRASTRUCTURE_ERROR
    assert result.message == message
    assert result.token is None
    assert result.is_terminal is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "purpose",
    [OtpPurpose.PURCHASE_REQUEST.value, OtpPurpose.UPDATE_VEHICLE.value, "TransferTitle"],
)
async def test_other_purposes_return_payload_untouched(purpose):
    payload = '{"id": 4, "note": "keep as is"}'

    result = await PurposeDispatcher().dispatch(consumed_record(purpose, payload=payload))

    assert result.is_valid is True
    assert result.message == "OTP verified successfully."
    assert result.payload == payload
    assert result.token is None


@pytest.mark.asyncio
async def test_identity_purpose_without_provider_fails_loudly():
    with pytest.raises(RuntimeError):
        await PurposeDispatcher().dispatch(consumed_record(OtpPurpose.LOGIN.value))


@pytest.mark.asyncio
async def test_registered_handler_overrides_default():
    seen = []

    async def archive(record):
        seen.append(record.payload)
        return OtpVerificationResult(is_valid=True, message="Archived.")

    dispatcher = PurposeDispatcher()
    dispatcher.register("Archive", archive)

    result = await dispatcher.dispatch(consumed_record("Archive", payload="lot-42"))

    assert result.message == "Archived."
    assert seen == ["lot-42"]
