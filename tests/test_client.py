import base64

import httpx
import pytest

from photofit.client import FALLBACK_ADVISORY, PhotofitClient
from photofit.errors import DecodeError, InvalidInput, UnknownPreset


def make_client(handler, calls=None):
    def recording(request):
        if calls is not None:
            calls.append(request)
        return handler(request)

    return PhotofitClient("http://photofit.test/api", transport=httpx.MockTransport(recording))


def test_server_result_is_decoded(noise_jpeg):
    payload = b"\xff\xd8\xffprocessed"
    calls = []

    def handler(request):
        return httpx.Response(
            200,
            json={
                "status": "success",
                "width": 140,
                "height": 60,
                "fileSizeKb": 12.5,
                "format": "JPG",
                "valid": True,
                "imageBase64": "data:image/jpeg;base64," + base64.b64encode(payload).decode(),
            },
        )

    with make_client(handler, calls) as client:
        result = client.process(noise_jpeg, preset="signature")

    assert result.source == "server"
    assert result.advisory is None
    assert result.data == payload
    assert result.report.size_kb == 12.5
    assert result.report.valid
    assert calls[0].url.path == "/api/process"
    assert b'name="preset"' in calls[0].content


def test_connection_error_falls_back_to_local(noise_jpeg):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with make_client(handler) as client:
        result = client.process(noise_jpeg, preset="signature")

    assert result.source == "local"
    assert result.advisory == FALLBACK_ADVISORY
    assert (result.report.width, result.report.height) == (140, 60)
    assert result.report.format == "JPG"
    assert result.report.valid == (10 <= result.report.size_kb <= 20)


def test_server_error_falls_back_to_local(noise_png):
    with make_client(lambda request: httpx.Response(503, text="unavailable")) as client:
        result = client.process(noise_png, content_type="image/png", rule_text="64x64, 0-500kb, png")

    assert result.source == "local"
    assert result.report.format == "PNG"
    assert result.data.startswith(b"\x89PNG")
    assert result.report.valid


def test_input_errors_are_not_masked(noise_jpeg):
    def handler(request):
        return httpx.Response(400, json={"detail": "Unknown preset: 'passport'"})

    with make_client(handler) as client:
        with pytest.raises(InvalidInput, match="passport"):
            client.process(noise_jpeg, preset="passport")


def test_decode_errors_are_not_masked(noise_jpeg):
    def handler(request):
        return httpx.Response(
            422, json={"detail": {"error": "Failed to process image", "details": "Could not read source image"}}
        )

    with make_client(handler) as client:
        with pytest.raises(DecodeError, match="Could not read"):
            client.process(noise_jpeg)


def test_local_mode_never_calls_server(noise_jpeg):
    calls = []
    with make_client(lambda request: httpx.Response(500), calls) as client:
        result = client.process(noise_jpeg, preset="photo", mode="local")

    assert calls == []
    assert result.source == "local"
    assert result.advisory is None
    assert (result.report.width, result.report.height) == (200, 230)


def test_local_mode_applies_same_validation(noise_jpeg):
    with make_client(lambda request: httpx.Response(500)) as client:
        with pytest.raises(UnknownPreset):
            client.process(noise_jpeg, preset="passport", mode="local")
        with pytest.raises(InvalidInput):
            client.process(b"plain text", content_type="text/plain", mode="local")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>portal</html>"),
        httpx.Response(200, json={"status": "success", "width": 140}),
        httpx.Response(200, json=["not", "a", "result"]),
        httpx.Response(404, text="<html>Not Found</html>"),
        httpx.Response(405, json={"detail": "Method Not Allowed"}),
    ],
    ids=["html-page", "wrong-shape", "json-list", "not-found", "method-not-allowed"],
)
def test_unusable_server_answers_fall_back_to_local(noise_jpeg, response):
    with make_client(lambda request: response) as client:
        result = client.process(noise_jpeg, preset="signature")

    assert result.source == "local"
    assert result.advisory == FALLBACK_ADVISORY
    assert (result.report.width, result.report.height) == (140, 60)


def test_client_rejects_budget_below_floor():
    with pytest.raises(ValueError, match="at least 15"):
        PhotofitClient("http://photofit.test/api", max_attempts=3)
