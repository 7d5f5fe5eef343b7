# parkpay/services/recognition_service.py
"""
Plate and vehicle recognition.

The lifecycle code only talks to PlateRecognizer / VehicleRecognizer. The
bundled SimulatedRecognizer returns random but plausible readings so the
capture flow can be exercised without a vision model; register a real
backend in RECOGNIZERS and select it with RECOGNITION_BACKEND.
"""

import random
import re
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from parkpay.config import settings
from parkpay.utils.logger import get_logger

logger = get_logger(__name__)

PLATE_PATTERNS = (
    re.compile(r"[A-Z]{3}[0-9]{3}"),   # ABC123 (standard)
    re.compile(r"[A-Z]{2}[0-9]{3}"),   # AB123
    re.compile(r"[A-Z]{3}[0-9]{2}"),   # ABC12
)

VEHICLE_CATALOG = {
    "Toyota": ["Corolla", "Camry", "Yaris", "Hilux", "RAV4"],
    "Chevrolet": ["Aveo", "Cruze", "Spark", "Captiva", "Silverado"],
    "Ford": ["Fiesta", "Focus", "Escape", "F-150", "EcoSport"],
    "Hyundai": ["Accent", "Elantra", "Tucson", "Santa Fe", "i10"],
    "Nissan": ["Sentra", "Versa", "X-Trail", "Frontier", "March"],
    "Kia": ["Rio", "Cerato", "Sportage", "Sorento", "Picanto"],
    "Volkswagen": ["Gol", "Polo", "Jetta", "Tiguan", "Amarok"],
    "Renault": ["Logan", "Sandero", "Duster", "Fluence", "Kwid"],
}
COLORS = ["White", "Black", "Grey", "Silver", "Blue", "Red", "Green", "Yellow", "Beige", "Brown"]


@dataclass
class PlateReading:
    text: str
    confidence: float   # 0..1
    method: str


@dataclass
class VehicleReading:
    make: str
    model: str
    color: str
    confidence: float   # 0..1
    method: str


class PlateRecognizer(ABC):
    @abstractmethod
    def recognize_plate(self, image: bytes) -> PlateReading:
        ...


class VehicleRecognizer(ABC):
    @abstractmethod
    def recognize_vehicle(self, image: bytes) -> VehicleReading:
        ...


def extract_plate(text: str) -> Optional[str]:
    """Pull a plate number out of raw OCR text. Returns None if nothing plausible is found."""
    clean = re.sub(r"[^A-Z0-9]", "", (text or "").upper())
    for pattern in PLATE_PATTERNS:
        match = pattern.search(clean)
        if match:
            return match.group(0)
    if 5 <= len(clean) <= 7:
        logger.debug(f"Non-standard plate accepted: {clean}")
        return clean
    return None


class SimulatedRecognizer(PlateRecognizer, VehicleRecognizer):
    """Random readings. Stand-in until a real vision backend is plugged in."""

    method = "simulation"

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def recognize_plate(self, image: bytes) -> PlateReading:
        text = ("".join(self._rng.choices(string.ascii_uppercase, k=3))
                + "".join(self._rng.choices(string.digits, k=3)))
        return PlateReading(text=text, confidence=0.85, method=self.method)

    def recognize_vehicle(self, image: bytes) -> VehicleReading:
        make = self._rng.choice(list(VEHICLE_CATALOG))
        return VehicleReading(
            make=make,
            model=self._rng.choice(VEHICLE_CATALOG[make]),
            color=self._rng.choice(COLORS),
            confidence=round(0.75 + self._rng.random() * 0.2, 2),
            method=self.method,
        )


RECOGNIZERS = {
    "simulated": SimulatedRecognizer,
}


def get_recognizer(backend: Optional[str] = None):
    backend = backend or settings.RECOGNITION_BACKEND
    try:
        return RECOGNIZERS[backend]()
    except KeyError:
        raise ValueError(f"Unknown recognition backend '{backend}'. Known: {sorted(RECOGNIZERS)}")
