from __future__ import annotations

import io
import random

import pytest
from PIL import Image

from photofit.config import get_settings


def encode(img: Image.Image, fmt: str = "PNG", **params) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def noise_image(width: int, height: int, seed: int = 0) -> Image.Image:
    rnd = random.Random(seed)
    return Image.frombytes("RGB", (width, height), rnd.randbytes(width * height * 3))


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    upload_dir = tmp_path / "uploads"
    monkeypatch.setenv("PHOTOFIT_UPLOAD_DIR", str(upload_dir))
    monkeypatch.setenv("PHOTOFIT_API_URL", "http://photofit.test/api")
    get_settings.cache_clear()
    yield upload_dir
    get_settings.cache_clear()


@pytest.fixture
def upload_dir(isolated_settings):
    return isolated_settings


@pytest.fixture
def solid_png() -> bytes:
    return encode(Image.new("RGB", (1000, 1000), color=(120, 130, 140)), "PNG")


@pytest.fixture
def noise_jpeg() -> bytes:
    return encode(noise_image(640, 480), "JPEG", quality=95)


@pytest.fixture
def noise_png() -> bytes:
    return encode(noise_image(400, 400), "PNG")
