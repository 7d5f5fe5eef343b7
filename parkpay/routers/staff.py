from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from parkpay.database import get_db
from parkpay.schemas.staff import StaffCreate, StaffOut
from parkpay.services import staff_service

router = APIRouter()


@router.get("/admin/staff", response_model=list[StaffOut])
def list_staff(db: Session = Depends(get_db)):
    return staff_service.list_staff(db)


@router.post("/admin/staff", summary="Add a staff member")
def add_staff(body: StaffCreate, db: Session = Depends(get_db)):
    member = staff_service.add_staff(db, body)
    return {"status": "created", "message": f"Staff member {member.email} added", "id": member.id}
