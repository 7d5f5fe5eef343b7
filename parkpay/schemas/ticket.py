from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class CarInfo(BaseModel):
    plate: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    owner_name: Optional[str] = None
    owner_phone: Optional[str] = None


class TicketOut(BaseModel):
    id: int
    code: str
    status: str
    created_at: Optional[datetime]
    occupied_at: Optional[datetime]
    confirmed_at: Optional[datetime]
    amount_due: float
    last_payment_id: Optional[int]
    car_info: Optional[CarInfo] = None

    class Config:
        from_attributes = True


class TicketCodeIn(BaseModel):
    ticket_code: str


class PayableTicketOut(BaseModel):
    """What a customer sees before paying."""
    id: int
    code: str
    status: str
    entered_at: Optional[datetime]
    amount_due: float
    amount_local: float
    hourly_rate: float
    exchange_rate: float
    last_payment_id: Optional[int]
    car_info: Optional[CarInfo] = None
