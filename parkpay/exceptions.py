# parkpay/exceptions.py
"""
Domain errors raised by the services layer.
main.py turns each one into a JSON response with its status code.
"""

from typing import Optional


class ParkingError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class ValidationFailed(ParkingError):
    """Missing or invalid input."""
    status_code = 400


class NotFound(ParkingError):
    """Unknown ticket, car or payment."""
    status_code = 404


class StateConflict(ParkingError):
    """Entity exists but is in the wrong state for the operation."""
    status_code = 400

    def __init__(self, message: str, current_state: Optional[str] = None):
        super().__init__(message)
        self.current_state = current_state

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.current_state is not None:
            body["current_state"] = self.current_state
        return body


class IntegrityViolation(ParkingError):
    """Stored records contradict each other (strict integrity mode only)."""
    status_code = 409


class ImageUploadFailed(ParkingError):
    status_code = 500

    def __init__(self, reason: str):
        # reason is logged by the caller; clients only see the generic message
        super().__init__("Image upload failed")
        self.reason = reason
