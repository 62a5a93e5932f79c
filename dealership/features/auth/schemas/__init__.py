from dealership.features.auth.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdateUserRequest,
    UserResponse,
)

__all__ = ["AuthResponse", "LoginRequest", "RegisterRequest", "UpdateUserRequest", "UserResponse"]
