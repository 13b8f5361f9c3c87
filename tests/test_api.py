import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from photofit.errors import EncodeError
from photofit.handlers import process_handler
from photofit.main import app


@pytest.fixture
def client():
    return TestClient(app)


def post_image(client, data, content_type="image/jpeg", **form):
    return client.post(
        "/api/process",
        files={"image": ("upload.jpg", data, content_type)},
        data=form,
    )


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "Server is running"}


def test_process_with_preset(client, noise_jpeg, upload_dir):
    response = post_image(client, noise_jpeg, preset="signature")
    assert response.status_code == 200

    body = response.json()
    assert body["status"] == "success"
    assert (body["width"], body["height"]) == (140, 60)
    assert body["format"] == "JPG"
    assert body["valid"] == (10 <= body["fileSizeKb"] <= 20)
    assert body["imageBase64"].startswith("data:image/jpeg;base64,")

    encoded = base64.b64decode(body["imageBase64"].split(",", 1)[1])
    with Image.open(io.BytesIO(encoded)) as img:
        assert img.size == (140, 60)
    assert list(upload_dir.iterdir()) == []


def test_process_with_rule_text(client, noise_png, upload_dir):
    response = post_image(client, noise_png, "image/png", preset="custom", ruleText="300x100, 1-5000kb, png")
    assert response.status_code == 200

    body = response.json()
    assert (body["width"], body["height"]) == (300, 100)
    assert body["format"] == "PNG"
    assert body["valid"] is True
    assert body["imageBase64"].startswith("data:image/png;base64,")


def test_process_defaults_to_photo_rule(client, noise_jpeg):
    body = post_image(client, noise_jpeg).json()
    assert (body["width"], body["height"]) == (200, 230)


def test_non_image_rejected_before_processing(client, monkeypatch, upload_dir):
    def fail(*args, **kwargs):
        raise AssertionError("fit_to_spec must not run")

    monkeypatch.setattr(process_handler, "fit_to_spec", fail)

    response = post_image(client, b"hello world", "text/plain", preset="photo")
    assert response.status_code == 400

    response = post_image(client, b"hello world, not a jpeg", "image/jpeg", preset="photo")
    assert response.status_code == 400
    assert not upload_dir.exists() or list(upload_dir.iterdir()) == []


def test_unknown_preset(client, noise_jpeg):
    response = post_image(client, noise_jpeg, preset="passport")
    assert response.status_code == 400
    assert "passport" in response.json()["detail"]


def test_inverted_rule_rejected(client, noise_jpeg):
    response = post_image(client, noise_jpeg, ruleText="200x230, 50-20kb")
    assert response.status_code == 400


def test_oversized_upload(client, noise_jpeg, monkeypatch):
    monkeypatch.setenv("PHOTOFIT_MAX_UPLOAD_BYTES", "1024")
    from photofit.config import get_settings

    get_settings.cache_clear()
    response = post_image(client, noise_jpeg, preset="photo")
    assert response.status_code == 413


def test_corrupt_image_cleans_up(client, upload_dir):
    response = post_image(client, b"\xff\xd8\xff" + b"\x00" * 64, preset="photo")
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "Failed to process image"
    assert list(upload_dir.iterdir()) == []


def test_encoder_failure_cleans_up(client, noise_jpeg, monkeypatch, upload_dir):
    seen = []

    def explode(source, spec, **kwargs):
        seen.extend(upload_dir.iterdir())
        raise EncodeError("encoder crashed")

    monkeypatch.setattr(process_handler, "fit_to_spec", explode)

    response = post_image(client, noise_jpeg, preset="photo")
    assert response.status_code == 500
    assert response.json()["detail"]["details"] == "encoder crashed"
    assert len(seen) == 1
    assert list(upload_dir.iterdir()) == []


def test_oversized_dimensions_rejected_before_processing(client, noise_jpeg, monkeypatch, upload_dir):
    def fail(*args, **kwargs):
        raise AssertionError("fit_to_spec must not run")

    monkeypatch.setattr(process_handler, "fit_to_spec", fail)

    response = post_image(client, noise_jpeg, ruleText="99999999999x99999999999, 20-50kb")
    assert response.status_code == 400
    assert not upload_dir.exists() or list(upload_dir.iterdir()) == []
