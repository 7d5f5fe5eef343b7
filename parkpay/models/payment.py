"""
Payments table: one row per customer payment attempt.
Created as pending_validation, then moved once to validated or rejected by staff.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, JSON
from parkpay.database import Base

PENDING_VALIDATION = "pending_validation"
VALIDATED = "validated"
REJECTED = "rejected"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_id = Column(Integer, nullable=False)
    ticket_code = Column(String(20), nullable=False, index=True)
    transfer_reference = Column(String(100), nullable=False)
    bank = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=False)
    national_id = Column(String(50), nullable=False)
    amount_paid = Column(Float, nullable=False)
    amount_due = Column(Float, nullable=False, default=0)   # ticket amount when submitted
    paid_at = Column(DateTime, nullable=False, index=True)
    status = Column(String(30), nullable=False, default=PENDING_VALIDATION, index=True)
    validated_at = Column(DateTime)
    rejected_at = Column(DateTime)
    exit_time = Column(String(10))          # now | 5min | ... | 60min
    estimated_exit_at = Column(DateTime)
    car_info = Column(JSON)

    def snapshot(self) -> dict:
        return {
            "id": self.id,
            "transfer_reference": self.transfer_reference,
            "bank": self.bank,
            "amount_paid": self.amount_paid,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
        }

    def __repr__(self):
        return f"<Payment {self.id} ticket={self.ticket_code} status={self.status}>"
