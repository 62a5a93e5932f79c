import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from dealership.features.auth.models.user import User
from dealership.features.cars.models.car import Car
from dealership.platform.db.base import Base


class PurchaseRequestStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    COMPLETED = "Completed"


class PurchaseRequest(Base):
    __tablename__ = "purchase_requests"

    id = Column(Integer, primary_key=True, index=True)
    car_id = Column(Integer, ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    requested_price = Column(Numeric(18, 2), nullable=False)
    message = Column(String(1000), nullable=True)
    request_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    status = Column(
        Enum(
            PurchaseRequestStatus,
            values_callable=lambda statuses: [s.value for s in statuses],
            name="purchase_request_status",
        ),
        nullable=False,
        default=PurchaseRequestStatus.PENDING,
    )
    admin_notes = Column(String(1000), nullable=True)

    car = relationship(Car, lazy="selectin")
    customer = relationship(User, lazy="selectin")

    def __repr__(self):
        return f"<PurchaseRequest(id={self.id}, car_id={self.car_id}, status={self.status})>"
