from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class StaffCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    role: str = Field(pattern=r"^(admin|operator)$")


class StaffOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class BankOut(BaseModel):
    id: int
    code: str
    name: str

    class Config:
        from_attributes = True
