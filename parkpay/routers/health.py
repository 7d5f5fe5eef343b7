"""
System health check endpoint.
Returns status of backend + DB + image host reachability.
"""

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from parkpay.database import get_db
from parkpay.config import settings
from parkpay.services.stats_stream import broadcaster
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Image host reachability (only when IMAGE_UPLOAD_URL is configured)
    - Number of open stats streams
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "image_host": "local" if not settings.IMAGE_UPLOAD_URL else "unknown",
        "stats_subscribers": broadcaster.subscriber_count,
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    if settings.IMAGE_UPLOAD_URL:
        try:
            resp = requests.head(settings.IMAGE_UPLOAD_URL, timeout=3)
            # Upload endpoints answer HEAD with 4xx; only 5xx means the host is unhealthy
            result["image_host"] = "ok" if resp.status_code < 500 else f"http_{resp.status_code}"
        except requests.exceptions.ConnectionError:
            result["image_host"] = "unreachable"
            result["status"] = "degraded"
        except Exception as e:
            result["image_host"] = f"error: {str(e)}"

    return result
