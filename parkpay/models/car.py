"""
Cars table: vehicles currently using a space.
A row lives from registration until exit; its final state is kept in car_history.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from parkpay.database import Base

PARKED = "parked"
PARKED_CONFIRMED = "parked_confirmed"
PAID_VALIDATED = "paid_validated"

PRESENT_STATES = (PARKED, PARKED_CONFIRMED, PAID_VALIDATED)

PLATE_PLACEHOLDER = "PENDING"
FIELD_PLACEHOLDER = "TBD"


class Car(Base):
    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate = Column(String(20), nullable=False, index=True)
    make = Column(String(100))
    model = Column(String(100))
    color = Column(String(50))
    owner_name = Column(String(200))
    owner_phone = Column(String(50))
    ticket_code = Column(String(20), nullable=False, index=True)
    entered_at = Column(DateTime, nullable=False)
    status = Column(String(30), nullable=False, default=PARKED)
    registered_at = Column(DateTime)
    updated_at = Column(DateTime)
    images = Column(JSON)   # image urls + {method, confidence} per captured field

    def snapshot(self) -> dict:
        return {
            "plate": self.plate,
            "make": self.make,
            "model": self.model,
            "color": self.color,
            "owner_name": self.owner_name,
            "owner_phone": self.owner_phone,
        }

    def __repr__(self):
        return f"<Car {self.plate} ticket={self.ticket_code} status={self.status}>"
