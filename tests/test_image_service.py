# tests/test_image_service.py
"""Image storage: local fallback and hosted upload."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
from unittest.mock import MagicMock, AsyncMock, patch
from parkpay.config import settings
from parkpay.exceptions import ImageUploadFailed
from parkpay.services.image_service import store_image

UPLOAD_URL = "https://images.example.com/v1_1/demo/image/upload"


def mock_client(response=None, error=None):
    client = MagicMock()
    client.post = AsyncMock(return_value=response, side_effect=error)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=client)
    context.__aexit__ = AsyncMock(return_value=False)
    return client, context


class TestLocalStore:
    @pytest.mark.asyncio
    async def test_saves_under_image_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "IMAGE_UPLOAD_URL", None)
        monkeypatch.setattr(settings, "IMAGE_DIR", str(tmp_path))

        path = await store_image(b"\xff\xd8jpeg", "IMG_0001.JPG", "plate")

        assert os.path.dirname(path) == str(tmp_path)
        assert os.path.basename(path).startswith("plate_")
        assert path.endswith(".jpg")
        with open(path, "rb") as f:
            assert f.read() == b"\xff\xd8jpeg"

    @pytest.mark.asyncio
    async def test_unknown_kind(self):
        with pytest.raises(ValueError):
            await store_image(b"x", "a.jpg", "driver")


class TestHostedUpload:
    @pytest.mark.asyncio
    async def test_returns_hosted_url(self, monkeypatch):
        monkeypatch.setattr(settings, "IMAGE_UPLOAD_URL", UPLOAD_URL)
        monkeypatch.setattr(settings, "IMAGE_UPLOAD_PRESET", "parking")
        response = MagicMock(status_code=200)
        response.json.return_value = {"secure_url": "https://images.example.com/parking-vehicles/x.jpg"}
        client, context = mock_client(response=response)

        with patch("httpx.AsyncClient", return_value=context):
            url = await store_image(b"jpeg", "car.jpg", "vehicle")

        assert url == "https://images.example.com/parking-vehicles/x.jpg"
        _, kwargs = client.post.call_args
        assert kwargs["data"] == {"folder": "parking-vehicles", "upload_preset": "parking"}

    @pytest.mark.asyncio
    async def test_host_error_status(self, monkeypatch):
        monkeypatch.setattr(settings, "IMAGE_UPLOAD_URL", UPLOAD_URL)
        _, context = mock_client(response=MagicMock(status_code=502))

        with patch("httpx.AsyncClient", return_value=context):
            with pytest.raises(ImageUploadFailed) as exc:
                await store_image(b"jpeg", "car.jpg", "plate")

        assert exc.value.message == "Image upload failed"
        assert exc.value.reason == "HTTP 502"

    @pytest.mark.asyncio
    async def test_network_error(self, monkeypatch):
        monkeypatch.setattr(settings, "IMAGE_UPLOAD_URL", UPLOAD_URL)
        _, context = mock_client(error=httpx.ConnectError("connection refused"))

        with patch("httpx.AsyncClient", return_value=context):
            with pytest.raises(ImageUploadFailed):
                await store_image(b"jpeg", "car.jpg", "plate")
