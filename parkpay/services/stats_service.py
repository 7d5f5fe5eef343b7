# parkpay/services/stats_service.py
"""Dashboard counters, recomputed from scratch on every call."""

from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from parkpay.models import ticket as ticket_states
from parkpay.models import car as car_states
from parkpay.models import payment as payment_states
from parkpay.models.ticket import Ticket
from parkpay.models.car import Car
from parkpay.models.payment import Payment
from parkpay.models.staff import Staff


def _count(db: Session, column, *criteria) -> int:
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


def compute_stats(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)   # UTC day boundary
    tomorrow = midnight + timedelta(days=1)

    return {
        "pending_payments": _count(db, Payment.id, Payment.status == payment_states.PENDING_VALIDATION),
        "pending_confirmations": _count(db, Ticket.id, Ticket.status == ticket_states.OCCUPIED),
        "total_staff": _count(db, Staff.id),
        "today_payments": _count(db, Payment.id, Payment.paid_at >= midnight, Payment.paid_at < tomorrow),
        "total_tickets": _count(db, Ticket.id),
        "available_tickets": _count(db, Ticket.id, Ticket.status == ticket_states.AVAILABLE),
        "cars_parked": _count(db, Car.id, Car.status.in_(car_states.PRESENT_STATES)),
        "paid_tickets": _count(db, Ticket.id, Ticket.status == ticket_states.PAID_VALIDATED),
    }
