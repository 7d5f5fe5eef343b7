# parkpay/services/ticket_service.py
"""
Ticket / vehicle / payment lifecycle.

  available ──register──▶ occupied ──confirm──▶ parked_confirmed ──pay──▶ payment_pending
                                                      ▲                        │     │
                                                      │                 reject │     │ validate
                                                      │                        ▼     ▼
                                  payment_rejected ◀──┘ (payable again)   paid_validated ──exit──▶ available

Every transition stages all row changes on the session and commits once, so the
ticket, car, payment and history rows move together or not at all.
"""

from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from parkpay.config import settings
from parkpay.exceptions import NotFound, StateConflict, ValidationFailed, IntegrityViolation
from parkpay.models import ticket as ticket_states
from parkpay.models import car as car_states
from parkpay.models import payment as payment_states
from parkpay.models import car_history as history_states
from parkpay.models.ticket import Ticket
from parkpay.models.car import Car, PLATE_PLACEHOLDER, FIELD_PLACEHOLDER
from parkpay.models.payment import Payment
from parkpay.models.car_history import CarHistory
from parkpay.schemas.car import CarCreate, CarUpdate
from parkpay.schemas.payment import PaymentCreate
from parkpay.services.fee_service import quote_fee
from parkpay.utils.logger import get_logger

logger = get_logger(__name__)

EXIT_TIME_MINUTES = {"now": 0, "5min": 5, "10min": 10, "15min": 15,
                     "20min": 20, "30min": 30, "45min": 45, "60min": 60}


# ── Lookups ──────────────────────────────────────────────────────────────────

def get_ticket(db: Session, code: str, for_update: bool = False) -> Ticket:
    """Mutation paths pass for_update=True so concurrent transitions on one ticket queue up."""
    query = db.query(Ticket).filter(Ticket.code == code)
    if for_update:
        query = query.with_for_update()
    ticket = query.first()
    if not ticket:
        raise NotFound(f"Ticket {code} not found")
    return ticket


def get_active_car(db: Session, code: str, states=car_states.PRESENT_STATES) -> Optional[Car]:
    return (
        db.query(Car)
        .filter(Car.ticket_code == code, Car.status.in_(states))
        .order_by(Car.entered_at.desc())
        .first()
    )


def get_active_history(db: Session, car_id: int) -> Optional[CarHistory]:
    return (
        db.query(CarHistory)
        .filter(CarHistory.car_id == car_id, CarHistory.status != history_states.FINISHED)
        .order_by(CarHistory.id.desc())
        .first()
    )


def get_payment(db: Session, payment_id: int, for_update: bool = False) -> Payment:
    query = db.query(Payment).filter(Payment.id == payment_id)
    if for_update:
        query = query.with_for_update()
    payment = query.first()
    if not payment:
        raise NotFound(f"Payment {payment_id} not found")
    return payment


def _log_event(history: Optional[CarHistory], event: str, at: datetime):
    if history is None:
        return
    # Reassign so the JSON column is flagged dirty
    history.events = list(history.events or []) + [{"event": event, "at": at.isoformat()}]


def _commit(db: Session):
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# ── Inventory ────────────────────────────────────────────────────────────────

def create_ticket_inventory(db: Session, count: int = None, prefix: str = None) -> int:
    """Create PREFIX001..PREFIXnnn in `available`. Existing codes are left untouched."""
    count = count or settings.TICKET_COUNT
    prefix = prefix or settings.TICKET_PREFIX
    codes = [f"{prefix}{i:03d}" for i in range(1, count + 1)]
    existing = {c for (c,) in db.query(Ticket.code).filter(Ticket.code.in_(codes)).all()}

    now = datetime.utcnow()
    created = 0
    for code in codes:
        if code in existing:
            continue
        db.add(Ticket(code=code, status=ticket_states.AVAILABLE, created_at=now, amount_due=0))
        created += 1
    _commit(db)
    logger.info(f"[INVENTORY] {created} tickets created ({len(existing)} already existed)")
    return created


# ── Registration ─────────────────────────────────────────────────────────────

def ensure_available(db: Session, code: str, for_update: bool = False) -> Ticket:
    """The ticket must be `available` and not referenced by any live car."""
    ticket = get_ticket(db, code, for_update=for_update)
    if ticket.status != ticket_states.AVAILABLE:
        raise StateConflict(f"Ticket {ticket.code} is not available", ticket.status)

    holder = get_active_car(db, ticket.code)
    if holder:
        if settings.STRICT_TICKET_INTEGRITY:
            raise IntegrityViolation(f"Ticket {ticket.code} is available but car {holder.plate} still references it")
        raise StateConflict(f"Ticket {ticket.code} is still held by car {holder.plate}", ticket.status)
    return ticket


def normalize_plate(plate: Optional[str]) -> str:
    return plate.strip().upper() if plate and plate.strip() else PLATE_PLACEHOLDER


def ensure_plate_free(db: Session, plate: str, exclude_car_id: Optional[int] = None):
    """A real plate may be live on one ticket only. Placeholders may repeat."""
    if plate == PLATE_PLACEHOLDER:
        return
    query = db.query(Car).filter(Car.plate == plate, Car.status.in_(car_states.PRESENT_STATES))
    if exclude_car_id is not None:
        query = query.filter(Car.id != exclude_car_id)
    duplicate = query.first()
    if duplicate:
        raise ValidationFailed(f"A car with plate {plate} is already parked (ticket {duplicate.ticket_code})")


def register_car(db: Session, data: CarCreate, images: Optional[dict] = None) -> Car:
    ticket = ensure_available(db, data.ticket_code, for_update=True)
    plate = normalize_plate(data.plate)
    ensure_plate_free(db, plate)

    now = datetime.utcnow()
    car = Car(
        plate=plate,
        make=data.make or FIELD_PLACEHOLDER,
        model=data.model or FIELD_PLACEHOLDER,
        color=data.color or FIELD_PLACEHOLDER,
        owner_name=data.owner_name or FIELD_PLACEHOLDER,
        owner_phone=data.owner_phone or FIELD_PLACEHOLDER,
        ticket_code=ticket.code,
        entered_at=now,
        status=car_states.PARKED,
        registered_at=now,
        updated_at=now,
        images={**images, "captured_at": now.isoformat()} if images else None,
    )
    db.add(car)
    db.flush()   # need car.id for the history row

    ticket.status = ticket_states.OCCUPIED
    ticket.occupied_at = now
    ticket.car_info = car.snapshot()

    history = CarHistory(
        car_id=car.id,
        ticket_code=ticket.code,
        entered_at=now,
        total_amount=0,
        status=history_states.ACTIVE,
        events=[],
        registered_at=now,
        **car.snapshot(),
    )
    _log_event(history, "registered", now)
    db.add(history)
    _commit(db)

    logger.info(f"[REGISTER] Car {car.plate} → ticket {ticket.code} (car_id={car.id})")
    return car


def update_car(db: Session, car_id: int, data: CarUpdate) -> Car:
    car = db.query(Car).filter(Car.id == car_id).first()
    if not car:
        raise NotFound(f"Car {car_id} not found")

    changes = data.model_dump(exclude_unset=True)
    if "plate" in changes and changes["plate"] is not None:
        changes["plate"] = normalize_plate(changes["plate"])
        ensure_plate_free(db, changes["plate"], exclude_car_id=car.id)
    for field, value in changes.items():
        if value is not None:
            setattr(car, field, value)
    car.updated_at = datetime.utcnow()

    # Keep the denormalized copies in step
    ticket = db.query(Ticket).filter(Ticket.code == car.ticket_code).first()
    if ticket and ticket.status != ticket_states.AVAILABLE:
        ticket.car_info = car.snapshot()
    history = get_active_history(db, car.id)
    if history:
        for field, value in car.snapshot().items():
            setattr(history, field, value)

    _commit(db)
    logger.info(f"[UPDATE] Car {car.id} updated: {sorted(changes)}")
    return car


def attach_car_images(db: Session, car_id: int, images: dict) -> Car:
    car = db.query(Car).filter(Car.id == car_id).first()
    if not car:
        raise NotFound(f"Car {car_id} not found")
    now = datetime.utcnow()
    car.images = {**(car.images or {}), **images, "captured_at": now.isoformat()}
    car.updated_at = now
    _commit(db)
    logger.info(f"[IMAGE] Car {car.id} images updated: {sorted(images)}")
    return car


# ── Confirmation ─────────────────────────────────────────────────────────────

def confirm_parking(db: Session, code: str) -> Car:
    ticket = get_ticket(db, code, for_update=True)
    if ticket.status != ticket_states.OCCUPIED:
        raise StateConflict(f"Ticket {code} must be occupied to confirm parking", ticket.status)

    car = get_active_car(db, code, states=(car_states.PARKED,))
    if not car:
        raise NotFound(f"No parked car found for ticket {code}")

    now = datetime.utcnow()
    ticket.status = ticket_states.PARKED_CONFIRMED
    ticket.confirmed_at = now
    ticket.occupied_at = now   # billing starts at confirmation
    car.status = car_states.PARKED_CONFIRMED
    car.updated_at = now
    _log_event(get_active_history(db, car.id), "confirmed", now)
    _commit(db)

    logger.info(f"[CONFIRM] Ticket {code} confirmed for car {car.plate}")
    return car


# ── Customer read path ───────────────────────────────────────────────────────

def get_payable_ticket(db: Session, code: str, now: Optional[datetime] = None) -> dict:
    """
    Current payable details for a ticket, with the fee recomputed and stored.
    An `available` ticket still referenced by a live car is re-occupied
    (or rejected with IntegrityViolation when STRICT_TICKET_INTEGRITY is on).
    """
    now = now or datetime.utcnow()
    ticket = get_ticket(db, code, for_update=True)

    if ticket.status == ticket_states.PAID_VALIDATED:
        raise NotFound(f"Ticket {code} has already been paid and validated")
    if ticket.status == ticket_states.PAYMENT_PENDING:
        raise StateConflict(f"Ticket {code} already has a payment awaiting validation", ticket.status)

    car = get_active_car(db, code)

    if ticket.status == ticket_states.AVAILABLE:
        if not car:
            raise NotFound(f"Ticket {code} has no vehicle assigned")
        if settings.STRICT_TICKET_INTEGRITY:
            raise IntegrityViolation(f"Ticket {code} is available but car {car.plate} still references it")
        logger.warning(f"[DRIFT] Ticket {code} available with car {car.plate} parked, re-occupying")
        ticket.status = ticket_states.OCCUPIED
        ticket.occupied_at = car.entered_at
        ticket.car_info = car.snapshot()

    if ticket.status not in ticket_states.PAYABLE_STATES:
        raise StateConflict(
            f"Ticket {code} is not in a payable state. Current state: {ticket.status}", ticket.status
        )

    entered_at = ticket.occupied_at or (car.entered_at if car else None)
    if entered_at is None:
        raise StateConflict(f"Ticket {code} has no occupancy time", ticket.status)

    quote = quote_fee(db, entered_at, now)
    ticket.amount_due = quote.amount
    _commit(db)

    return {
        "id": ticket.id,
        "code": ticket.code,
        "status": ticket.status,
        "entered_at": entered_at,
        "amount_due": quote.amount,
        "amount_local": quote.amount_local,
        "hourly_rate": quote.hourly_rate,
        "exchange_rate": quote.exchange_rate,
        "last_payment_id": ticket.last_payment_id,
        "car_info": car.snapshot() if car else ticket.car_info,
    }


# ── Payments ─────────────────────────────────────────────────────────────────

def submit_payment(db: Session, data: PaymentCreate, now: Optional[datetime] = None) -> Payment:
    now = now or datetime.utcnow()
    ticket = get_ticket(db, data.ticket_code, for_update=True)

    if ticket.status == ticket_states.PAID_VALIDATED:
        raise StateConflict(f"Ticket {ticket.code} has already been paid", ticket.status)
    if ticket.status == ticket_states.AVAILABLE:
        raise StateConflict(f"Ticket {ticket.code} has no vehicle assigned", ticket.status)

    pending = db.query(Payment).filter(
        Payment.ticket_code == ticket.code,
        Payment.status == payment_states.PENDING_VALIDATION,
    ).first()
    if pending or ticket.status == ticket_states.PAYMENT_PENDING:
        raise StateConflict(f"Ticket {ticket.code} already has a payment awaiting validation", ticket.status)
    if ticket.status not in ticket_states.PAYABLE_STATES:
        raise StateConflict(
            f"Ticket {ticket.code} is not in a payable state. Current state: {ticket.status}", ticket.status
        )

    car = get_active_car(db, ticket.code)
    estimated_exit_at = None
    if data.exit_time:
        estimated_exit_at = now + timedelta(minutes=EXIT_TIME_MINUTES[data.exit_time])

    payment = Payment(
        ticket_id=ticket.id,
        ticket_code=ticket.code,
        transfer_reference=data.transfer_reference,
        bank=data.bank,
        phone=data.phone,
        national_id=data.national_id,
        amount_paid=round(data.amount_paid, 2),
        amount_due=ticket.amount_due or 0,
        paid_at=now,
        status=payment_states.PENDING_VALIDATION,
        exit_time=data.exit_time,
        estimated_exit_at=estimated_exit_at,
        car_info=car.snapshot() if car else ticket.car_info,
    )
    db.add(payment)
    db.flush()

    ticket.status = ticket_states.PAYMENT_PENDING
    ticket.last_payment_id = payment.id
    _commit(db)

    logger.info(f"[PAYMENT] Ticket {ticket.code}: payment {payment.id} of {payment.amount_paid} "
                f"ref={payment.transfer_reference} awaiting validation")
    return payment


def validate_payment(db: Session, payment_id: int) -> Payment:
    payment = get_payment(db, payment_id, for_update=True)
    if payment.status != payment_states.PENDING_VALIDATION:
        raise StateConflict(f"Payment {payment_id} is not awaiting validation", payment.status)

    now = datetime.utcnow()
    payment.status = payment_states.VALIDATED
    payment.validated_at = now

    ticket = db.query(Ticket).filter(Ticket.code == payment.ticket_code).with_for_update().first()
    if ticket:
        ticket.status = ticket_states.PAID_VALIDATED
        ticket.last_payment_id = payment.id

    car = get_active_car(db, payment.ticket_code)
    if car:
        car.status = car_states.PAID_VALIDATED
        car.updated_at = now
        history = get_active_history(db, car.id)
        if history:
            history.status = history_states.PAID
            history.total_amount = payment.amount_paid
            history.payment_id = payment.id
            history.payment = payment.snapshot()
            _log_event(history, "paid", now)
    _commit(db)

    logger.info(f"[VALIDATE] Payment {payment.id} validated, ticket {payment.ticket_code} ready for exit")
    return payment


def reject_payment(db: Session, payment_id: int) -> Payment:
    payment = get_payment(db, payment_id, for_update=True)
    if payment.status != payment_states.PENDING_VALIDATION:
        raise StateConflict(f"Payment {payment_id} is not awaiting validation", payment.status)

    now = datetime.utcnow()
    try:
        payment.status = payment_states.REJECTED
        payment.rejected_at = now

        ticket = db.query(Ticket).filter(Ticket.code == payment.ticket_code).with_for_update().first()
        if ticket:
            ticket.status = ticket_states.PAYMENT_REJECTED
            ticket.last_payment_id = None

        car = get_active_car(db, payment.ticket_code)
        if car:
            _log_event(get_active_history(db, car.id), "payment_rejected", now)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"[REJECT] Rolled back rejection of payment {payment_id}", exc_info=True)
        raise

    logger.info(f"[REJECT] Payment {payment.id} rejected, ticket {payment.ticket_code} payable again")
    return payment


# ── Exit ─────────────────────────────────────────────────────────────────────

def process_exit(db: Session, code: str) -> dict:
    ticket = get_ticket(db, code, for_update=True)
    if ticket.status != ticket_states.PAID_VALIDATED:
        raise StateConflict(f"Ticket {code} must be paid and validated before exit", ticket.status)

    car = get_active_car(db, code)
    if not car:
        raise NotFound(f"No car found for ticket {code}")

    now = datetime.utcnow()
    history = get_active_history(db, car.id)
    if history:
        history.status = history_states.FINISHED
        history.exited_at = now
        history.payment_id = history.payment_id or ticket.last_payment_id
        _log_event(history, "exited", now)

    summary = {"car_id": car.id, **car.snapshot()}
    db.delete(car)

    ticket.status = ticket_states.AVAILABLE
    ticket.occupied_at = None
    ticket.confirmed_at = None
    ticket.amount_due = 0
    ticket.last_payment_id = None
    ticket.car_info = None
    _commit(db)

    logger.info(f"[EXIT] Car {summary['plate']} left, ticket {code} available again")
    return summary


# ── Read models ──────────────────────────────────────────────────────────────

def list_available_tickets(db: Session) -> list[Ticket]:
    return db.query(Ticket).filter(Ticket.status == ticket_states.AVAILABLE).order_by(Ticket.code).all()


def list_pending_parkings(db: Session) -> list[Ticket]:
    return (
        db.query(Ticket)
        .filter(Ticket.status == ticket_states.OCCUPIED)
        .order_by(Ticket.occupied_at.desc())
        .all()
    )


def list_paid_tickets(db: Session) -> list[dict]:
    tickets = (
        db.query(Ticket)
        .filter(Ticket.status == ticket_states.PAID_VALIDATED)
        .order_by(Ticket.occupied_at.desc())
        .all()
    )
    result = []
    for t in tickets:
        car = get_active_car(db, t.code)
        result.append({
            "id": t.id,
            "code": t.code,
            "status": t.status,
            "occupied_at": t.occupied_at,
            "amount_due": t.amount_due,
            "last_payment_id": t.last_payment_id,
            "car_info": car.snapshot() if car else t.car_info,
        })
    return result


def list_cars(db: Session) -> list[Car]:
    return db.query(Car).order_by(Car.registered_at.desc()).all()


def list_car_history(db: Session, page: int = 1, limit: int = 20, search: str = "") -> dict:
    q = db.query(CarHistory)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            CarHistory.plate.ilike(pattern),
            CarHistory.owner_name.ilike(pattern),
            CarHistory.make.ilike(pattern),
            CarHistory.ticket_code.ilike(pattern),
        ))
    total = q.count()
    items = q.order_by(CarHistory.registered_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "history": items,
        "pagination": {"page": page, "limit": limit, "total": total,
                       "pages": (total + limit - 1) // limit},
    }
