# parkpay/services/staff_service.py
"""Staff and bank reference data, plus the first-run seed used by scripts/setup/init_db.py."""

from datetime import datetime
from sqlalchemy.orm import Session

from parkpay.exceptions import ValidationFailed
from parkpay.models.staff import Staff
from parkpay.models.bank import Bank
from parkpay.schemas.staff import StaffCreate
from parkpay.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_STAFF = [
    {"first_name": "Admin", "last_name": "System", "email": "admin@parkpay.local", "role": "admin"},
    {"first_name": "Operator", "last_name": "Example", "email": "operator@parkpay.local", "role": "operator"},
]

BANKS = [
    ("0102", "Banco de Venezuela (BDV)"),
    ("0105", "Banco Mercantil"),
    ("0108", "BBVA Provincial"),
    ("0134", "Banesco"),
    ("0115", "Banco Exterior"),
    ("0116", "Banco Occidental de Descuento (BOD)"),
    ("0191", "Banco Nacional de Crédito (BNC)"),
    ("0114", "Bancaribe"),
    ("0138", "Banco Plaza"),
    ("0171", "Banco Activo"),
    ("0128", "Banco Caroní"),
    ("0151", "Banco Fondo Común (BFC)"),
    ("0168", "Bancrecer"),
    ("0104", "Banco Venezolano de Crédito (BVC)"),
    ("0137", "Sofitasa"),
    ("0166", "Banco Agrícola de Venezuela"),
    ("0172", "Banavap"),
    ("0169", "Mi Banco"),
    ("0163", "Banco del Tesoro"),
    ("0175", "Banco Bicentenario del Pueblo"),
    ("0177", "Banco de la Fuerza Armada Nacional Bolivariana (BanFANB)"),
    ("0174", "Banco Universal"),
    ("0000", "Other banks"),
]


def list_staff(db: Session) -> list[Staff]:
    return db.query(Staff).order_by(Staff.created_at).all()


def add_staff(db: Session, body: StaffCreate) -> Staff:
    email = body.email.lower()
    if db.query(Staff).filter(Staff.email == email).first():
        raise ValidationFailed(f"Staff member {email} already exists")
    member = Staff(first_name=body.first_name, last_name=body.last_name, email=email,
                   role=body.role, created_at=datetime.utcnow())
    db.add(member)
    db.commit()
    logger.info(f"[STAFF] Added {email} as {body.role}")
    return member


def list_banks(db: Session) -> list[Bank]:
    return db.query(Bank).order_by(Bank.code).all()


def seed_reference_data(db: Session) -> dict:
    """Insert default staff and the bank list. Existing rows are kept."""
    staff_added = 0
    for member in DEFAULT_STAFF:
        if not db.query(Staff).filter(Staff.email == member["email"]).first():
            db.add(Staff(**member, created_at=datetime.utcnow()))
            staff_added += 1

    known = {code for (code,) in db.query(Bank.code).all()}
    banks_added = 0
    for code, name in BANKS:
        if code not in known:
            db.add(Bank(code=code, name=name))
            banks_added += 1

    db.commit()
    return {"staff": staff_added, "banks": banks_added}
