from dealership.features.auth.services.auth_service import AuthService

__all__ = ["AuthService"]
