"""Customer-facing endpoints: look up a ticket, see the fee, submit a payment."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from parkpay.database import get_db
from parkpay.schemas.ticket import PayableTicketOut
from parkpay.schemas.payment import PaymentCreate
from parkpay.schemas.company_settings import CompanySettingsOut
from parkpay.schemas.staff import BankOut
from parkpay.services import ticket_service, settings_service, staff_service

router = APIRouter()


@router.get("/ticket/{code}", response_model=PayableTicketOut, summary="Payable details for a ticket")
def get_ticket(code: str, db: Session = Depends(get_db)):
    """Recomputes the amount due from the current tariffs and stores it on the ticket."""
    return ticket_service.get_payable_ticket(db, code)


@router.get("/ticket-details", response_model=PayableTicketOut, summary="Payable details (query form)")
def get_ticket_details(code: str, db: Session = Depends(get_db)):
    return ticket_service.get_payable_ticket(db, code)


@router.post("/process-payment", summary="Submit a payment for validation")
def process_payment(body: PaymentCreate, db: Session = Depends(get_db)):
    payment = ticket_service.submit_payment(db, body)
    return {
        "status": "pending_validation",
        "message": "Payment registered and awaiting validation by staff",
        "payment_id": payment.id,
        "ticket_code": payment.ticket_code,
        "estimated_exit_at": payment.estimated_exit_at,
    }


@router.get("/company-settings", response_model=CompanySettingsOut, summary="Payment instructions and tariffs")
def public_company_settings(db: Session = Depends(get_db)):
    return settings_service.get_public_settings(db)


@router.get("/banks", response_model=list[BankOut], summary="Banks accepted for transfers")
def banks(db: Session = Depends(get_db)):
    return staff_service.list_banks(db)
