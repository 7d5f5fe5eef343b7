"""Staff endpoints for the ticket lifecycle: confirm parking, list queues, process exits."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from parkpay.database import get_db
from parkpay.schemas.ticket import TicketOut, TicketCodeIn
from parkpay.services import ticket_service

router = APIRouter()


@router.get("/admin/available-tickets", response_model=list[TicketOut], summary="Tickets free for a new car")
def available_tickets(db: Session = Depends(get_db)):
    return ticket_service.list_available_tickets(db)


@router.get("/admin/pending-parkings", response_model=list[TicketOut], summary="Occupied tickets awaiting confirmation")
def pending_parkings(db: Session = Depends(get_db)):
    return ticket_service.list_pending_parkings(db)


@router.post("/admin/confirm-parking", summary="Confirm a registered car is parked")
def confirm_parking(body: TicketCodeIn, db: Session = Depends(get_db)):
    car = ticket_service.confirm_parking(db, body.ticket_code)
    return {
        "status": "parked_confirmed",
        "message": f"Parking confirmed. The customer can now look up ticket {body.ticket_code} and pay.",
        "ticket_code": body.ticket_code,
        "car_info": car.snapshot(),
    }


@router.get("/admin/paid-tickets", summary="Paid tickets ready for exit")
def paid_tickets(db: Session = Depends(get_db)):
    return ticket_service.list_paid_tickets(db)


@router.post("/admin/vehicle-exit", summary="Let a paid car out and free its ticket")
def vehicle_exit(body: TicketCodeIn, db: Session = Depends(get_db)):
    car = ticket_service.process_exit(db, body.ticket_code)
    return {
        "status": "available",
        "message": f"Exit processed. Space {body.ticket_code} is available again.",
        "ticket_code": body.ticket_code,
        "car_info": car,
    }
