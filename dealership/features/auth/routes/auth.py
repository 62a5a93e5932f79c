from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.features.auth.models.user import User
from dealership.features.auth.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdateUserRequest,
)
from dealership.features.auth.services.auth_service import AuthService
from dealership.features.auth.utils.security import decode_access_token
from dealership.features.otp.schemas.otp import OtpPurpose, OtpVerifyRequest
from dealership.features.otp.services.otp_service import OtpService
from dealership.features.otp.utils.responses import issuance_response, verification_failure_response
from dealership.platform.config import settings
from dealership.platform.db.session import get_db
from dealership.platform.logger import get_logger
from dealership.platform.response import api_response

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user.
    """
    try:
        payload = decode_access_token(credentials.credentials)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await AuthService(db).get_user_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def _auth_payload(result) -> AuthResponse:
    return AuthResponse(
        token=result.token,
        expiration=datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        user=result.user,
    )


@router.post(
    "/register/request-otp",
    response_model=dict,
    summary="Request registration OTP",
    description="Store the registration details and send a one-time code to the email",
)
async def request_register_otp(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """
    Step one of registration. The account is only created once the code is verified.
    """
    if await AuthService(db).find_account_by_email(request.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    result = await OtpService(db).generate(
        email=request.email,
        purpose=OtpPurpose.REGISTER.value,
        payload=request.model_dump_json(),
    )
    return issuance_response(result)


@router.post(
    "/register/verify-otp",
    response_model=dict,
    summary="Complete registration",
    description="Verify the registration code, create the account and return a session token",
)
async def verify_register_otp(request: OtpVerifyRequest, db: AsyncSession = Depends(get_db)):
    result = await OtpService(db, identity=AuthService(db)).verify(
        email=request.email, code=request.code, purpose=OtpPurpose.REGISTER.value
    )
    if not (result.is_valid and result.token and result.user):
        return verification_failure_response(result)

    return api_response(
        data=_auth_payload(result),
        message=result.message,
        status_code=status.HTTP_201_CREATED,
    )


@router.post(
    "/login/request-otp",
    response_model=dict,
    summary="Request login OTP",
    description="Validate email and password, then send a one-time code",
)
async def request_login_otp(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    if not await AuthService(db).validate_credentials(request):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await OtpService(db).generate(email=request.email, purpose=OtpPurpose.LOGIN.value)
    return issuance_response(result)


@router.post(
    "/login/verify-otp",
    response_model=dict,
    summary="Complete login",
    description="Verify the login code and return a session token",
)
async def verify_login_otp(request: OtpVerifyRequest, db: AsyncSession = Depends(get_db)):
    result = await OtpService(db, identity=AuthService(db)).verify(
        email=request.email, code=request.code, purpose=OtpPurpose.LOGIN.value
    )
    if not (result.is_valid and result.token and result.user):
        return verification_failure_response(result, status_code=status.HTTP_401_UNAUTHORIZED)

    return api_response(data=_auth_payload(result), message=result.message)


@router.get("/users", response_model=dict, summary="List users")
async def list_users(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    auth_service = AuthService(db)
    users = await auth_service.list_users()
    return api_response(
        data=[auth_service.to_public_view(user) for user in users],
        message="Users retrieved",
    )


def _ensure_self_or_admin(current_user: User, user_id: str) -> None:
    if not current_user.is_admin and str(current_user.id) != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed")


@router.get("/users/{user_id}", response_model=dict, summary="Get a user")
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _ensure_self_or_admin(current_user, user_id)
    auth_service = AuthService(db)
    user = await auth_service.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return api_response(data=auth_service.to_public_view(user), message="User retrieved")


@router.put("/users/{user_id}", response_model=dict, summary="Update a user profile")
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _ensure_self_or_admin(current_user, user_id)
    auth_service = AuthService(db)
    user = await auth_service.update_user(user_id, request)
    return api_response(data=auth_service.to_public_view(user), message="User updated")


@router.delete("/users/{user_id}", response_model=dict, summary="Delete a user")
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).delete_user(user_id)
    return api_response(message="User deleted")
