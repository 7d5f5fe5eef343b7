"""Staff endpoints for car records: registration (with photos), edits, capture recognition, history."""

import asyncio
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
from parkpay.database import get_db
from parkpay.exceptions import ValidationFailed
from parkpay.schemas.car import CarCreate, CarUpdate, CarOut, CarHistoryPage
from parkpay.services import ticket_service
from parkpay.services.image_service import store_image, IMAGE_KINDS
from parkpay.services.recognition_service import get_recognizer
from parkpay.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


async def _collect_images(
    plate_image: Optional[UploadFile],
    vehicle_image: Optional[UploadFile],
    capture_method: str,
    plate_confidence: Optional[float],
    vehicle_confidence: Optional[float],
) -> dict:
    """Store uploaded photos and build the car's image metadata."""
    images = {}
    if plate_image is not None and plate_image.filename:
        images["plate_image_url"] = await store_image(await plate_image.read(), plate_image.filename, "plate")
        images["plate"] = {"method": capture_method, "confidence": plate_confidence}
    if vehicle_image is not None and vehicle_image.filename:
        images["vehicle_image_url"] = await store_image(await vehicle_image.read(), vehicle_image.filename, "vehicle")
        images["vehicle"] = {"method": capture_method, "confidence": vehicle_confidence}
    return images


def _register(db: Session, data: CarCreate, images: dict) -> dict:
    car = ticket_service.register_car(db, data, images or None)
    return {
        "status": "registered",
        "message": "Car registered",
        "car_id": car.id,
        "ticket_code": car.ticket_code,
        "plate": car.plate,
        "images": sorted(k for k in images if k.endswith("_url")),
    }


def _attach(db: Session, car_id: int, images: dict) -> dict:
    car = ticket_service.attach_car_images(db, car_id, images)
    return {"status": "updated", "message": "Images saved", "car_id": car.id, "images": car.images}


@router.get("/admin/cars", response_model=list[CarOut], summary="Cars currently on the lot")
def list_cars(db: Session = Depends(get_db)):
    return ticket_service.list_cars(db)


@router.post("/admin/cars", summary="Register a car against an available ticket")
async def register_car(
    ticket_code: str = Form(...),
    plate: Optional[str] = Form(None),
    make: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    owner_name: Optional[str] = Form(None),
    owner_phone: Optional[str] = Form(None),
    capture_method: str = Form("manual"),
    plate_confidence: Optional[float] = Form(None),
    vehicle_confidence: Optional[float] = Form(None),
    plate_image: Optional[UploadFile] = File(None),
    vehicle_image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    """Multipart form. Only ticket_code is required; photos are optional."""
    # Session work runs in a worker thread; uploads stay on the event loop
    await asyncio.to_thread(ticket_service.ensure_available, db, ticket_code)   # before any photo is uploaded
    data = CarCreate(ticket_code=ticket_code, plate=plate, make=make, model=model,
                     color=color, owner_name=owner_name, owner_phone=owner_phone)
    images = await _collect_images(plate_image, vehicle_image, capture_method,
                                   plate_confidence, vehicle_confidence)
    return await asyncio.to_thread(_register, db, data, images)


@router.put("/admin/cars/{car_id}", summary="Edit a car's details")
def update_car(car_id: int, body: CarUpdate, db: Session = Depends(get_db)):
    car = ticket_service.update_car(db, car_id, body)
    return {"status": "updated", "message": "Car updated", "car_id": car.id, "car_info": car.snapshot()}


@router.post("/admin/cars/{car_id}/images", summary="Attach or replace a car's photos")
async def attach_images(
    car_id: int,
    capture_method: str = Form("manual"),
    plate_confidence: Optional[float] = Form(None),
    vehicle_confidence: Optional[float] = Form(None),
    plate_image: Optional[UploadFile] = File(None),
    vehicle_image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    images = await _collect_images(plate_image, vehicle_image, capture_method,
                                   plate_confidence, vehicle_confidence)
    if not images:
        raise ValidationFailed("No image received")
    return await asyncio.to_thread(_attach, db, car_id, images)


@router.post("/admin/process-vehicle", summary="Store a capture and run recognition on it")
async def process_vehicle(image: UploadFile = File(...), kind: str = Form(..., alias="type")):
    if kind not in IMAGE_KINDS:
        raise ValidationFailed(f"type must be one of {', '.join(IMAGE_KINDS)}")
    content = await image.read()
    if not content:
        raise ValidationFailed("No image received")

    url = await store_image(content, image.filename, kind)
    recognizer = get_recognizer()
    if kind == "plate":
        reading = recognizer.recognize_plate(content)
        logger.info(f"[CAPTURE] Plate {reading.text} ({reading.confidence:.0%}, {reading.method})")
        return {"success": True, "image_url": url, "plate": reading.text,
                "confidence": reading.confidence, "method": reading.method}

    reading = recognizer.recognize_vehicle(content)
    logger.info(f"[CAPTURE] Vehicle {reading.make} {reading.model} {reading.color} ({reading.confidence:.0%})")
    return {"success": True, "image_url": url, "make": reading.make, "model": reading.model,
            "color": reading.color, "confidence": reading.confidence, "method": reading.method}


@router.get("/admin/car-history", response_model=CarHistoryPage, summary="Visit history, newest first")
def car_history(page: int = 1, limit: int = 20, search: str = "", db: Session = Depends(get_db)):
    if page < 1 or limit < 1:
        raise ValidationFailed("page and limit must be positive")
    return ticket_service.list_car_history(db, page=page, limit=limit, search=search)
