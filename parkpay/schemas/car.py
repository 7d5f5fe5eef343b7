from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class CarCreate(BaseModel):
    ticket_code: str
    plate: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    owner_name: Optional[str] = None
    owner_phone: Optional[str] = None


class CarUpdate(BaseModel):
    plate: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    owner_name: Optional[str] = None
    owner_phone: Optional[str] = None


class CarOut(BaseModel):
    id: int
    plate: str
    make: Optional[str]
    model: Optional[str]
    color: Optional[str]
    owner_name: Optional[str]
    owner_phone: Optional[str]
    ticket_code: str
    entered_at: datetime
    status: str
    registered_at: Optional[datetime]
    updated_at: Optional[datetime]
    images: Optional[dict] = None

    class Config:
        from_attributes = True


class CarHistoryOut(BaseModel):
    id: int
    car_id: int
    plate: str
    make: Optional[str]
    model: Optional[str]
    color: Optional[str]
    owner_name: Optional[str]
    owner_phone: Optional[str]
    ticket_code: str
    entered_at: datetime
    exited_at: Optional[datetime]
    total_amount: float
    payment_id: Optional[int]
    payment: Optional[dict] = None
    status: str
    events: list[dict]
    registered_at: Optional[datetime]

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class CarHistoryPage(BaseModel):
    history: list[CarHistoryOut]
    pagination: Pagination
