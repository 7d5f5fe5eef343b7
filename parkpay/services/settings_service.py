# parkpay/services/settings_service.py
"""
Company settings: payment instructions + tariffs, stored as a single row.

- No row yet      → a default is synthesized (not persisted).
- Legacy tariffs  → {hourly_rate, exchange_rate} is migrated in place to the
                    day/night split (night = day × NIGHT_RATE_MULTIPLIER).
- Writes          → validated by CompanySettingsIn before anything is stored.
"""

from datetime import datetime
from sqlalchemy.orm import Session

from parkpay.config import settings
from parkpay.models.company_settings import CompanySettings
from parkpay.schemas.company_settings import CompanySettingsIn, MobilePayment, BankTransfer
from parkpay.utils.logger import get_logger

logger = get_logger(__name__)


def default_settings() -> dict:
    return {
        "mobile_payment": MobilePayment().model_dump(),
        "bank_transfer": BankTransfer().model_dump(),
        "tariffs": dict(settings.DEFAULT_TARIFFS),
    }


def migrate_tariffs(tariffs: dict | None) -> tuple[dict, bool]:
    """Return (tariffs in the current shape, whether anything changed)."""
    if not tariffs:
        return dict(settings.DEFAULT_TARIFFS), True
    if "day_rate" in tariffs and "night_rate" in tariffs:
        return tariffs, False

    day_rate = round(float(tariffs.get("day_rate", tariffs.get("hourly_rate", settings.DEFAULT_HOURLY_RATE))), 2)
    night_rate = tariffs.get("night_rate", day_rate * settings.NIGHT_RATE_MULTIPLIER)
    migrated = {
        "day_rate": day_rate,
        "night_rate": round(float(night_rate), 2),
        "exchange_rate": round(float(tariffs.get("exchange_rate", settings.DEFAULT_EXCHANGE_RATE)), 2),
        "night_start": tariffs.get("night_start", settings.DEFAULT_NIGHT_START),
        "night_end": tariffs.get("night_end", settings.DEFAULT_NIGHT_END),
    }
    return migrated, True


def _to_dict(row: CompanySettings) -> dict:
    return {
        "mobile_payment": row.mobile_payment or MobilePayment().model_dump(),
        "bank_transfer": row.bank_transfer or BankTransfer().model_dump(),
        "tariffs": row.tariffs,
    }


def get_company_settings(db: Session, commit: bool = False) -> dict:
    """
    A migration is only flushed: callers inside a transition commit it together
    with their own changes. Standalone reads pass commit=True.
    """
    row = db.query(CompanySettings).first()
    if not row:
        return default_settings()

    tariffs, changed = migrate_tariffs(row.tariffs)
    if changed:
        row.tariffs = tariffs
        row.updated_at = datetime.utcnow()
        db.flush()
        if commit:
            db.commit()
        logger.info(f"[SETTINGS] Tariffs migrated to day/night split: {tariffs}")
    return _to_dict(row)


def get_tariffs(db: Session) -> dict:
    return get_company_settings(db)["tariffs"]


def get_public_settings(db: Session) -> dict:
    """What customers see on the payment page: instructions and current tariffs."""
    current = get_company_settings(db, commit=True)
    return {key: current[key] for key in ("mobile_payment", "bank_transfer", "tariffs")}


def update_company_settings(db: Session, payload: CompanySettingsIn) -> dict:
    """Upsert the settings row. payload is already validated, so there is no partial write."""
    row = db.query(CompanySettings).first()
    created = row is None
    if created:
        row = CompanySettings()
        db.add(row)

    row.mobile_payment = payload.mobile_payment.model_dump()
    row.bank_transfer = payload.bank_transfer.model_dump()
    row.tariffs = payload.tariffs.model_dump()
    row.updated_at = datetime.utcnow()
    db.commit()

    logger.info(f"[SETTINGS] {'Created' if created else 'Updated'} company settings: tariffs={row.tariffs}")
    return {"created": created, "settings": _to_dict(row)}
