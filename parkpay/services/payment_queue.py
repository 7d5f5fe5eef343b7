# parkpay/services/payment_queue.py
"""
Staff payment review queue.

Each pending payment is merged with its ticket and a vehicle snapshot, newest
payment first, then re-ordered by how soon the customer said they will leave.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from parkpay.models import payment as payment_states
from parkpay.models.payment import Payment
from parkpay.models.ticket import Ticket
from parkpay.services.ticket_service import get_active_car


def urgency_score(exit_at: Optional[datetime], now: datetime) -> int:
    """0 = normal … 4 = customer is already past their requested exit time."""
    if exit_at is None:
        return 0
    minutes_left = (exit_at - now).total_seconds() / 60
    if minutes_left < 0:
        return 4
    if minutes_left < 15:
        return 3
    if minutes_left < 30:
        return 2
    if minutes_left < 60:
        return 1
    return 0


def _car_snapshot(db: Session, payment: Payment, ticket: Optional[Ticket]) -> Optional[dict]:
    # payment snapshot → live car → ticket copy (the car may already have left)
    if payment.car_info:
        return payment.car_info
    car = get_active_car(db, payment.ticket_code)
    if car:
        return car.snapshot()
    return ticket.car_info if ticket else None


def build_review_queue(db: Session, now: Optional[datetime] = None) -> list[dict]:
    now = now or datetime.utcnow()
    payments = (
        db.query(Payment)
        .filter(Payment.status == payment_states.PENDING_VALIDATION)
        .order_by(Payment.paid_at.desc())
        .all()
    )
    codes = {p.ticket_code for p in payments}
    tickets = {t.code: t for t in db.query(Ticket).filter(Ticket.code.in_(codes)).all()} if codes else {}

    queue = []
    for p in payments:
        ticket = tickets.get(p.ticket_code)
        queue.append({
            "id": p.id,
            "ticket_code": p.ticket_code,
            "transfer_reference": p.transfer_reference,
            "bank": p.bank,
            "phone": p.phone,
            "national_id": p.national_id,
            "amount_paid": p.amount_paid,
            "paid_at": p.paid_at,
            "status": p.status,
            "amount_due": ticket.amount_due if ticket else p.amount_due,
            "ticket_status": ticket.status if ticket else None,
            "exit_time": p.exit_time,
            "estimated_exit_at": p.estimated_exit_at,
            "urgency": urgency_score(p.estimated_exit_at, now),
            "car_info": _car_snapshot(db, p, ticket),
        })

    # sort() is stable, so equal urgency keeps newest-first
    queue.sort(key=lambda row: row["urgency"], reverse=True)
    return queue
