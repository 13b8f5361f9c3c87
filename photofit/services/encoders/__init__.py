from __future__ import annotations

from .base import Encoder, QualityScale
from .pillow_encoder import PillowEncoder, RasterEncoder
from .registry import get_encoder

__all__ = [
    "Encoder",
    "PillowEncoder",
    "QualityScale",
    "RasterEncoder",
    "get_encoder",
]
