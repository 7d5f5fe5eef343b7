"""Staff payment review: pending queue, validate, reject."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from parkpay.database import get_db
from parkpay.schemas.payment import PaymentIdIn, PendingPaymentOut
from parkpay.services import ticket_service
from parkpay.services.payment_queue import build_review_queue

router = APIRouter()


@router.get("/admin/pending-payments", response_model=list[PendingPaymentOut],
            summary="Payments awaiting validation, most urgent first")
def pending_payments(db: Session = Depends(get_db)):
    return build_review_queue(db)


@router.put("/admin/validate-payment", summary="Accept a payment")
def validate_payment(body: PaymentIdIn, db: Session = Depends(get_db)):
    payment = ticket_service.validate_payment(db, body.payment_id)
    return {"status": payment.status, "message": "Payment validated",
            "payment_id": payment.id, "ticket_code": payment.ticket_code}


@router.put("/admin/reject-payment", summary="Reject a payment so the customer can pay again")
def reject_payment(body: PaymentIdIn, db: Session = Depends(get_db)):
    payment = ticket_service.reject_payment(db, body.payment_id)
    return {"status": payment.status, "message": "Payment rejected",
            "payment_id": payment.id, "ticket_code": payment.ticket_code}
