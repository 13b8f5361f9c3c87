"""HTTP client for the processing service with a local fallback.

``PhotofitClient.process`` sends the image to ``POST /api/process``. When the
service cannot be reached, fails on its side or answers with anything other
than a result or an input error, the same spec is fitted locally with
:class:`RasterEncoder` and the result carries an advisory message instead of
an error. Input errors reported by the service (400, 413, 422) are raised,
never masked by the fallback.
"""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Literal, Optional

import httpx
from pydantic import ValidationError

from photofit.config import MIN_ATTEMPTS, get_settings
from photofit.errors import DecodeError, InvalidInput, PhotofitError, UploadTooLarge
from photofit.models import ProcessResponse, ValidationReport
from photofit.services.encoders import RasterEncoder
from photofit.services.fitting import fit_to_spec
from photofit.services.rules import derive_spec
from photofit.services.uploads import validate_upload

logger = logging.getLogger(__name__)

Mode = Literal["server", "local"]

FALLBACK_ADVISORY = "Failed to connect to backend. Using client-side processing instead."


class ServiceUnavailable(PhotofitError):
    """Raised when the service is unreachable or does not answer with a usable result."""


@dataclass
class ClientResult:
    report: ValidationReport
    data: bytes
    source: Mode
    advisory: Optional[str] = None


def _decode_data_uri(uri: str) -> bytes:
    _, _, payload = uri.partition(",")
    return base64.b64decode(payload)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    detail = body.get("detail", response.text) if isinstance(body, dict) else body
    if isinstance(detail, dict):
        return str(detail.get("details") or detail.get("error") or detail)
    return str(detail)


class PhotofitClient:
    """Synchronous client; pass *transport* to route requests elsewhere (tests)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        max_attempts: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.api_url).rstrip("/")
        self._max_attempts = settings.max_attempts if max_attempts is None else max_attempts
        if self._max_attempts < MIN_ATTEMPTS:
            raise ValueError(f"max_attempts must be at least {MIN_ATTEMPTS}, got {self._max_attempts}")
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=timeout or settings.client_timeout,
            transport=transport,
        )
        self._local_encoder = RasterEncoder()

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PhotofitClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(
        self,
        image: bytes,
        *,
        filename: str = "image.jpg",
        content_type: str = "image/jpeg",
        preset: Optional[str] = None,
        rule_text: Optional[str] = None,
        mode: Mode = "server",
    ) -> ClientResult:
        if mode == "local":
            return self.process_locally(image, content_type=content_type, preset=preset, rule_text=rule_text)

        try:
            return self._process_remote(image, filename, content_type, preset, rule_text)
        except ServiceUnavailable as exc:
            logger.warning("Server processing failed (%s); falling back to local processing", exc)
            result = self.process_locally(image, content_type=content_type, preset=preset, rule_text=rule_text)
            result.advisory = FALLBACK_ADVISORY
            return result

    def process_locally(
        self,
        image: bytes,
        *,
        content_type: str = "image/jpeg",
        preset: Optional[str] = None,
        rule_text: Optional[str] = None,
    ) -> ClientResult:
        validate_upload(image, content_type)
        spec = derive_spec(preset, rule_text)
        result = fit_to_spec(image, spec, encoder=self._local_encoder, max_attempts=self._max_attempts)
        return ClientResult(report=ValidationReport.from_result(result), data=result.data, source="local")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _process_remote(
        self,
        image: bytes,
        filename: str,
        content_type: str,
        preset: Optional[str],
        rule_text: Optional[str],
    ) -> ClientResult:
        form = {"preset": preset or "custom", "ruleText": rule_text or ""}
        try:
            response = self._client.post(
                "/process",
                files={"image": (filename, image, content_type)},
                data=form,
            )
        except httpx.TransportError as exc:
            raise ServiceUnavailable(f"{type(exc).__name__}: {exc}") from exc

        if response.status_code == 400:
            raise InvalidInput(_error_detail(response))
        if response.status_code == 413:
            raise UploadTooLarge(len(image), get_settings().max_upload_bytes)
        if response.status_code == 422:
            raise DecodeError(_error_detail(response))
        if not response.is_success:
            raise ServiceUnavailable(f"HTTP {response.status_code}: {_error_detail(response)}")

        try:
            payload = ProcessResponse.model_validate(response.json())
            data = _decode_data_uri(payload.image_base64)
        except (ValueError, ValidationError) as exc:
            raise ServiceUnavailable(f"Unexpected response from {response.url}: {exc}") from exc

        report = ValidationReport(
            width=payload.width,
            height=payload.height,
            size_kb=payload.file_size_kb,
            format=payload.format,
            valid=payload.valid,
        )
        return ClientResult(report=report, data=data, source="server")
