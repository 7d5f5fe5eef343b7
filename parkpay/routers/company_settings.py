"""Admin view of the company settings singleton."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from parkpay.database import get_db
from parkpay.schemas.company_settings import CompanySettingsIn, CompanySettingsOut
from parkpay.services import settings_service

router = APIRouter()


@router.get("/admin/company-settings", response_model=CompanySettingsOut)
def get_company_settings(db: Session = Depends(get_db)):
    return settings_service.get_company_settings(db, commit=True)


@router.put("/admin/company-settings", summary="Save payment instructions and tariffs")
def put_company_settings(body: CompanySettingsIn, db: Session = Depends(get_db)):
    result = settings_service.update_company_settings(db, body)
    return {
        "status": "created" if result["created"] else "updated",
        "message": "Settings saved",
        **result["settings"],
    }
