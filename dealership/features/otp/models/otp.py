from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text, UniqueConstraint

from dealership.platform.db.base import Base


class OtpCode(Base):
    __tablename__ = "otp_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(6), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    purpose = Column(String(50), nullable=False)
    payload = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=3)
    # True while unconsumed, NULL afterwards; NULLs never collide in the unique constraint
    active = Column(Boolean, nullable=True, default=True)

    __table_args__ = (
        UniqueConstraint("email", "purpose", "active", name="uq_otp_email_purpose_active"),
        Index("ix_otp_expires_at", "expires_at"),
    )

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - self.attempts, 0)

    def __repr__(self):
        return f"<OtpCode(id={self.id}, email={self.email}, purpose={self.purpose}, used={self.used})>"
