"""
Car history table: permanent audit record of one vehicle visit.
Created at registration, updated at confirmation, payment and exit. Never deleted.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, JSON
from parkpay.database import Base

ACTIVE = "active"
PAID = "paid"
FINISHED = "finished"


class CarHistory(Base):
    __tablename__ = "car_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    car_id = Column(Integer, nullable=False, index=True)
    plate = Column(String(20), nullable=False, index=True)
    make = Column(String(100))
    model = Column(String(100))
    color = Column(String(50))
    owner_name = Column(String(200))
    owner_phone = Column(String(50))
    ticket_code = Column(String(20), nullable=False, index=True)
    entered_at = Column(DateTime, nullable=False)
    exited_at = Column(DateTime)
    total_amount = Column(Float, nullable=False, default=0)
    payment_id = Column(Integer)
    payment = Column(JSON)
    status = Column(String(20), nullable=False, default=ACTIVE)
    events = Column(JSON, nullable=False, default=list)   # [{"event": ..., "at": iso}, ...]
    registered_at = Column(DateTime, index=True)

    def __repr__(self):
        return f"<CarHistory {self.id} plate={self.plate} status={self.status}>"
