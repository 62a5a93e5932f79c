import enum

from sqlalchemy import Column, Enum, String

from dealership.platform.db.base import BaseModel


class UserRole(str, enum.Enum):
    ADMIN = "Admin"
    CUSTOMER = "Customer"


class User(BaseModel):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)

    role = Column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles], name="user_role"),
        nullable=False,
        default=UserRole.CUSTOMER,
    )

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
