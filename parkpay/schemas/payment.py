from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from parkpay.schemas.ticket import CarInfo

EXIT_TIME_OPTIONS = ("now", "5min", "10min", "15min", "20min", "30min", "45min", "60min")


class PaymentCreate(BaseModel):
    ticket_code: str = Field(min_length=1)
    transfer_reference: str = Field(min_length=1)
    bank: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    national_id: str = Field(min_length=1)
    amount_paid: float = Field(gt=0)
    exit_time: Optional[str] = None

    @field_validator("ticket_code", "transfer_reference", "bank", "phone", "national_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("exit_time")
    @classmethod
    def known_exit_time(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in EXIT_TIME_OPTIONS:
            raise ValueError(f"must be one of {', '.join(EXIT_TIME_OPTIONS)}")
        return v


class PaymentIdIn(BaseModel):
    payment_id: int


class PaymentOut(BaseModel):
    id: int
    ticket_id: int
    ticket_code: str
    transfer_reference: str
    bank: str
    phone: str
    national_id: str
    amount_paid: float
    amount_due: float
    paid_at: datetime
    status: str
    validated_at: Optional[datetime]
    rejected_at: Optional[datetime]
    exit_time: Optional[str]
    estimated_exit_at: Optional[datetime]
    car_info: Optional[CarInfo] = None

    class Config:
        from_attributes = True


class PendingPaymentOut(BaseModel):
    """Review-queue row: payment joined with its ticket and vehicle snapshot."""
    id: int
    ticket_code: str
    transfer_reference: str
    bank: str
    phone: str
    national_id: str
    amount_paid: float
    paid_at: datetime
    status: str
    amount_due: Optional[float]
    ticket_status: Optional[str]
    exit_time: Optional[str]
    estimated_exit_at: Optional[datetime]
    urgency: int
    car_info: Optional[CarInfo] = None
