from dealership.features.otp.models.otp import OtpCode

__all__ = ["OtpCode"]
