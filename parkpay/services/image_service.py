# parkpay/services/image_service.py
"""
Image storage for vehicle captures.

With IMAGE_UPLOAD_URL set, images are POSTed to the image host
(Cloudinary-style unsigned upload: file + upload_preset + folder) and the
hosted `secure_url` is returned. Without it, images are written under
IMAGE_DIR and the local path is returned.
"""

import httpx
import os
import uuid
from datetime import datetime
from parkpay.config import settings
from parkpay.exceptions import ImageUploadFailed
from parkpay.utils.logger import get_logger

logger = get_logger(__name__)

IMAGE_KINDS = ("plate", "vehicle")


def _filename(kind: str, original: str) -> str:
    ext = os.path.splitext(original or "")[1].lower() or ".jpg"
    timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
    return f"{kind}_{timestamp}_{uuid.uuid4().hex[:8]}{ext}"


async def _upload(content: bytes, filename: str, kind: str) -> str:
    data = {"folder": f"parking-{kind}s"}
    if settings.IMAGE_UPLOAD_PRESET:
        data["upload_preset"] = settings.IMAGE_UPLOAD_PRESET

    try:
        async with httpx.AsyncClient(timeout=settings.IMAGE_UPLOAD_TIMEOUT_SECONDS) as client:
            response = await client.post(settings.IMAGE_UPLOAD_URL, data=data,
                                         files={"file": (filename, content)})
    except httpx.HTTPError as e:
        logger.error(f"[IMAGE] Upload of {filename} failed: {e}")
        raise ImageUploadFailed(str(e))

    if response.status_code != 200:
        logger.error(f"[IMAGE] Image host returned HTTP {response.status_code} for {filename}")
        raise ImageUploadFailed(f"HTTP {response.status_code}")

    url = response.json().get("secure_url") or response.json().get("url")
    if not url:
        raise ImageUploadFailed("response has no url")
    logger.info(f"[IMAGE] Uploaded {filename} ({len(content)} bytes) → {url}")
    return url


def _save_locally(content: bytes, filename: str) -> str:
    os.makedirs(settings.IMAGE_DIR, exist_ok=True)
    filepath = os.path.join(settings.IMAGE_DIR, filename)
    try:
        with open(filepath, "wb") as f:
            f.write(content)
    except OSError as e:
        logger.error(f"[IMAGE] Could not write {filepath}: {e}")
        raise ImageUploadFailed(str(e))
    logger.info(f"[IMAGE] Saved {filename} ({len(content)} bytes)")
    return filepath


async def store_image(content: bytes, original_filename: str, kind: str) -> str:
    """Store one captured image and return its URL (or local path)."""
    if kind not in IMAGE_KINDS:
        raise ValueError(f"Unknown image kind '{kind}'")
    filename = _filename(kind, original_filename)
    if settings.IMAGE_UPLOAD_URL:
        return await _upload(content, filename, kind)
    return _save_locally(content, filename)
