"""Fit an image to exact pixel dimensions and a byte-size window.

The source is resized once by the injected :class:`Encoder`; only the
encoding is repeated. Quality starts near the top of the encoder's scale
and moves down while the output is too large and up while it is too small,
for at most ``max_attempts`` encodes. Whatever the last attempt produced is
returned, inside the window or not.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from PIL import Image

from photofit.config import MIN_ATTEMPTS, get_settings
from photofit.models import ProcessingResult, TargetSpec

from .encoders import Encoder, get_encoder

logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    data: bytes
    size_kb: float
    quality: float
    attempts: int
    valid: bool
    qualities: List[float] = field(default_factory=list)


def size_kb(data: bytes) -> float:
    return len(data) / 1024.0


def search_quality(
    raster: Any,
    encoder: Encoder,
    min_kb: float,
    max_kb: float,
    fmt: str,
    max_attempts: int,
) -> SearchOutcome:
    """Re-encode *raster* until its size lands in ``[min_kb, max_kb]``."""

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    scale = encoder.scale
    quality = scale.start
    qualities: List[float] = []
    data = b""
    current_kb = 0.0

    for attempt in range(1, max_attempts + 1):
        qualities.append(quality)
        data = encoder.encode(raster, quality, fmt)
        current_kb = size_kb(data)

        if min_kb <= current_kb <= max_kb:
            logger.debug("Hit %.2f KB at quality %s after %d attempt(s)", current_kb, quality, attempt)
            return SearchOutcome(data, current_kb, quality, attempt, True, qualities)

        if current_kb > max_kb:
            quality = scale.decrease(quality)
        else:
            quality = scale.increase(quality)

    logger.info(
        "No encoding within %s-%s KB after %d attempts; keeping %.2f KB at quality %s",
        min_kb,
        max_kb,
        max_attempts,
        current_kb,
        qualities[-1],
    )
    return SearchOutcome(data, current_kb, qualities[-1], max_attempts, False, qualities)


def _encoded_size(data: bytes, fallback: tuple[int, int]) -> tuple[int, int]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except OSError:  # pragma: no cover
        logger.warning("Could not read back encoded image header; reporting requested size")
        return fallback


def fit_image(
    source: bytes,
    width: int,
    height: int,
    min_kb: float,
    max_kb: float,
    fmt: str,
    *,
    encoder: Optional[Encoder] = None,
    max_attempts: Optional[int] = None,
) -> ProcessingResult:
    """Resize *source* to ``width x height`` and search for a fitting encoding.

    Raises
    ------
    DecodeError
        If *source* is not a readable image.
    UnsupportedFormat, EncodeError
        If *fmt* is unknown or the encoder fails on any attempt.
    """

    settings = get_settings()
    if encoder is None:
        encoder = get_encoder(settings.default_encoder)
    if max_attempts is None:
        max_attempts = settings.max_attempts
    if max_attempts < MIN_ATTEMPTS:
        raise ValueError(f"max_attempts must be at least {MIN_ATTEMPTS}, got {max_attempts}")

    raster = encoder.prepare(source, width, height)
    outcome = search_quality(raster, encoder, min_kb, max_kb, fmt, max_attempts)
    actual_width, actual_height = _encoded_size(outcome.data, (width, height))

    return ProcessingResult(
        data=outcome.data,
        width=actual_width,
        height=actual_height,
        size_kb=outcome.size_kb,
        format=fmt.lower(),
        valid=outcome.valid,
        quality=outcome.quality,
        attempts=outcome.attempts,
    )


def fit_to_spec(
    source: bytes,
    spec: TargetSpec,
    *,
    encoder: Optional[Encoder] = None,
    max_attempts: Optional[int] = None,
) -> ProcessingResult:
    return fit_image(
        source,
        spec.width,
        spec.height,
        spec.min_kb,
        spec.max_kb,
        spec.format,
        encoder=encoder,
        max_attempts=max_attempts,
    )
