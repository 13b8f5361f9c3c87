from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class QualityScale:
    """Native quality range of an encoder and the search steps taken on it.

    Steps are asymmetric: an oversized encoding drops quality faster than an
    undersized one raises it.
    """

    minimum: float
    maximum: float
    start: float
    step_down: float
    step_up: float

    def clamp(self, quality: float) -> float:
        # rounding keeps fractional scales free of accumulated float drift
        return round(min(max(quality, self.minimum), self.maximum), 6)

    def decrease(self, quality: float) -> float:
        return self.clamp(quality - self.step_down)

    def increase(self, quality: float) -> float:
        return self.clamp(quality + self.step_up)


class Encoder(ABC):
    """Resize-once, encode-many capability injected into the quality search."""

    name: str = "abstract"
    scale: QualityScale

    @abstractmethod
    def prepare(self, source: bytes, width: int, height: int) -> Any:
        """Decode *source* and return a raster of exactly ``width x height``.

        Raises
        ------
        DecodeError
            If the source bytes are not a readable image.
        """

    @abstractmethod
    def encode(self, raster: Any, quality: float, fmt: str) -> bytes:
        """Encode *raster* at *quality* (on ``self.scale``) into *fmt*.

        Raises
        ------
        UnsupportedFormat
            If *fmt* is not a supported output format.
        EncodeError
            If the underlying encoder fails.
        """
