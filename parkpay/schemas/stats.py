from pydantic import BaseModel


class DashboardStats(BaseModel):
    pending_payments: int
    pending_confirmations: int
    total_staff: int
    today_payments: int
    total_tickets: int
    available_tickets: int
    cars_parked: int
    paid_tickets: int
