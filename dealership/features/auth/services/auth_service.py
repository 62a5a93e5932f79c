from datetime import timedelta
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.features.auth.models.user import User, UserRole
from dealership.features.auth.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    UpdateUserRequest,
    UserResponse,
)
from dealership.features.auth.utils.security import (
    create_access_token,
    hash_password,
    verify_password,
)
from dealership.platform.config import settings
from dealership.platform.logger import get_logger

logger = get_logger(__name__)


class AuthService:
    """Account storage and session tokens; the identity provider behind OTP login and registration."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_account(self, details: RegisterRequest, role: UserRole = UserRole.CUSTOMER) -> User:
        email = details.email.lower()
        if await self.find_account_by_email(email):
            raise ValueError("Email already registered")

        user = User(
            email=email,
            password_hash=hash_password(details.password),
            first_name=details.first_name,
            last_name=details.last_name,
            phone_number=details.phone_number,
            address=details.address,
            city=details.city,
            state=details.state,
            zip_code=details.zip_code,
            role=role,
        )

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError:
            await self.db.rollback()
            raise ValueError("Email already registered")
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        logger.info(f"Account created - user: {user.id}, email: {user.email}, role: {user.role.value}")
        return user

    async def find_account_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def validate_credentials(self, request: LoginRequest) -> bool:
        user = await self.find_account_by_email(request.email)
        return user is not None and verify_password(request.password, user.password_hash)

    def issue_session_token(self, account: User) -> str:
        return create_access_token(
            data={
                "sub": str(account.id),
                "email": account.email,
                "name": account.full_name,
                "roles": [account.role.value],
            },
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    def to_public_view(self, account: User) -> UserResponse:
        return UserResponse(
            id=str(account.id),
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            phone_number=account.phone_number,
            address=account.address,
            city=account.city,
            state=account.state,
            zip_code=account.zip_code,
            created_at=account.created_at,
            roles=[account.role.value],
        )

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def list_customers(self) -> List[User]:
        return await self.search_customers()

    async def get_customer(self, user_id: str) -> Optional[User]:
        """Fetch a user only if it holds the Customer role."""
        user = await self.get_user_by_id(user_id)
        if user is None or user.role != UserRole.CUSTOMER:
            return None
        return user

    async def search_customers(self, name: Optional[str] = None, email: Optional[str] = None) -> List[User]:
        query = select(User).where(User.role == UserRole.CUSTOMER)
        if name:
            needle = name.lower()
            query = query.where(
                or_(
                    func.lower(User.first_name).contains(needle),
                    func.lower(User.last_name).contains(needle),
                )
            )
        if email:
            query = query.where(func.lower(User.email).contains(email.lower()))

        result = await self.db.execute(query.order_by(User.created_at))
        return list(result.scalars().all())

    async def update_user(self, user_id: str, request: UpdateUserRequest) -> User:
        user = await self.get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        for field, value in request.model_dump(exclude_unset=True).items():
            setattr(user, field, value)

        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def delete_user(self, user_id: str) -> None:
        user = await self.get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        await self.db.delete(user)
        await self.db.commit()
        logger.info(f"Account deleted - user: {user_id}")

    async def ensure_admin(self, email: str, password: str) -> User:
        """Create the seed admin account unless it already exists."""
        existing = await self.find_account_by_email(email)
        if existing:
            return existing

        details = RegisterRequest(
            email=email,
            password=password,
            first_name="Admin",
            last_name="User",
        )
        return await self.create_account(details, role=UserRole.ADMIN)
