import secrets

OTP_MIN_VALUE = 100000
OTP_MAX_VALUE = 999999


def generate_otp_code() -> str:
    """Generate a 6-digit OTP in the 100000-999999 range, never zero-led."""
    return str(OTP_MIN_VALUE + secrets.randbelow(OTP_MAX_VALUE - OTP_MIN_VALUE + 1))
