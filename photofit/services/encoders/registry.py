from __future__ import annotations

from .base import Encoder
from .pillow_encoder import PillowEncoder, RasterEncoder

_ENCODERS: dict[str, type[Encoder]] = {
    "pillow": PillowEncoder,
    "raster": RasterEncoder,
}


def get_encoder(name: str) -> Encoder:
    key = name.lower()
    if key not in _ENCODERS:
        raise ValueError(f"Unsupported encoder: {key}")
    return _ENCODERS[key]()
