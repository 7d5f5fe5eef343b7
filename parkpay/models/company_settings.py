"""
Company settings: a single row with payment instructions and tariffs.
Read through settings_service, which synthesizes defaults when the row is missing.
"""

from sqlalchemy import Column, Integer, DateTime, JSON
from parkpay.database import Base


class CompanySettings(Base):
    __tablename__ = "company_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    mobile_payment = Column(JSON)   # {bank, national_id, phone}
    bank_transfer = Column(JSON)    # {bank, national_id, phone, account_number}
    tariffs = Column(JSON)          # {day_rate, night_rate, exchange_rate, night_start, night_end}
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<CompanySettings {self.id}>"
