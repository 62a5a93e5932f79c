from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String

from dealership.platform.db.base import Base


class Car(Base):
    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, index=True)
    make = Column(String(100), nullable=False, index=True)
    model = Column(String(100), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    color = Column(String(50), nullable=False)
    vin = Column(String(17), unique=True, nullable=False)
    price = Column(Numeric(18, 2), nullable=False)
    mileage = Column(Integer, nullable=False, default=0)
    transmission = Column(String(50), nullable=True)
    fuel_type = Column(String(50), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    date_added = Column(DateTime, nullable=False, default=datetime.utcnow)
    date_sold = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Car(id={self.id}, {self.year} {self.make} {self.model}, vin={self.vin})>"
