"""
Tickets table: one row per physical parking space.
Rows are created in bulk at setup time and never deleted; the status column
cycles through the lifecycle every time a vehicle comes and goes.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, JSON
from parkpay.database import Base

AVAILABLE = "available"
OCCUPIED = "occupied"
PARKED_CONFIRMED = "parked_confirmed"
PAYMENT_PENDING = "payment_pending"
PAYMENT_REJECTED = "payment_rejected"
PAID_VALIDATED = "paid_validated"

TICKET_STATES = (AVAILABLE, OCCUPIED, PARKED_CONFIRMED, PAYMENT_PENDING, PAYMENT_REJECTED, PAID_VALIDATED)
PAYABLE_STATES = (OCCUPIED, PARKED_CONFIRMED, PAYMENT_REJECTED)


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), unique=True, nullable=False, index=True)   # e.g. PARK007
    status = Column(String(30), nullable=False, default=AVAILABLE, index=True)
    created_at = Column(DateTime)
    occupied_at = Column(DateTime)        # billing starts here
    confirmed_at = Column(DateTime)
    amount_due = Column(Float, nullable=False, default=0)
    last_payment_id = Column(Integer)     # payments.id of the latest live attempt
    car_info = Column(JSON)               # snapshot of the parked car's basic info

    def __repr__(self):
        return f"<Ticket {self.code} status={self.status}>"
