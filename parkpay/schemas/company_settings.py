from pydantic import BaseModel, Field, field_validator

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class MobilePayment(BaseModel):
    bank: str = ""
    national_id: str = ""
    phone: str = ""


class BankTransfer(BaseModel):
    bank: str = ""
    national_id: str = ""
    phone: str = ""
    account_number: str = ""


class TariffsIn(BaseModel):
    day_rate: float = Field(ge=0)
    night_rate: float = Field(ge=0)
    exchange_rate: float = Field(ge=0)
    night_start: str = Field(pattern=HHMM_PATTERN)
    night_end: str = Field(pattern=HHMM_PATTERN)

    @field_validator("day_rate", "night_rate", "exchange_rate", mode="before")
    @classmethod
    def numeric_only(cls, v):
        # Reject numeric strings and booleans; the admin form sends numbers.
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("must be a number")
        return v

    @field_validator("day_rate", "night_rate", "exchange_rate")
    @classmethod
    def two_decimals(cls, v: float) -> float:
        return round(v, 2)


class CompanySettingsIn(BaseModel):
    mobile_payment: MobilePayment = MobilePayment()
    bank_transfer: BankTransfer = BankTransfer()
    tariffs: TariffsIn


class CompanySettingsOut(BaseModel):
    mobile_payment: MobilePayment
    bank_transfer: BankTransfer
    tariffs: dict
