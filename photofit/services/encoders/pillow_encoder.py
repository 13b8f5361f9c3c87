"""Pillow based encoders.

``PillowEncoder`` is the service path: Lanczos resize and a 10-100 integer
quality scale. ``RasterEncoder`` is the local fallback path: the source is
drawn onto an opaque white canvas with bilinear smoothing and quality is a
0.1-1.0 fraction, the way a browser canvas ``toBlob`` call takes it.

PNG is lossless and has no quality knob, so below the top of the scale the
image is quantised to a palette whose size shrinks with quality.
"""
from __future__ import annotations

import io
import logging

from PIL import Image, ImageColor, UnidentifiedImageError

from photofit.errors import DecodeError, EncodeError, UnsupportedFormat
from photofit.models import PIL_FORMATS

from .base import Encoder, QualityScale

logger = logging.getLogger(__name__)

JPEG_BACKGROUND = "#ffffff"
_PALETTE_COLORS = 256


def open_image(source: bytes) -> Image.Image:
    """Decode *source* fully into memory."""
    try:
        with Image.open(io.BytesIO(source)) as img:
            img.load()
            return img.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(f"Could not read source image: {exc}") from exc


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info)


def _flatten(img: Image.Image, background: str = JPEG_BACKGROUND) -> Image.Image:
    """Prepare *img* for JPEG, which has no alpha channel."""
    if _has_alpha(img):
        base = Image.new("RGBA", img.size, ImageColor.getrgb(background))
        composed = Image.alpha_composite(base, img.convert("RGBA"))
        return composed.convert("RGB")
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def _quantize(img: Image.Image, colors: int) -> Image.Image:
    if _has_alpha(img):
        return img.convert("RGBA").quantize(colors=colors, method=Image.Quantize.FASTOCTREE)
    return img.convert("RGB").quantize(colors=colors)


def save_image(img: Image.Image, pil_format: str, quality: int) -> bytes:
    """Encode *img* with Pillow at an integer quality of 1-100."""
    buffer = io.BytesIO()
    if pil_format == "JPEG":
        _flatten(img).save(buffer, format="JPEG", quality=quality, optimize=True)
    elif quality >= 100:
        out = img if img.mode in ("RGB", "RGBA") else img.convert("RGBA" if _has_alpha(img) else "RGB")
        out.save(buffer, format="PNG", optimize=True)
    else:
        colors = max(2, round(_PALETTE_COLORS * quality / 100))
        _quantize(img, colors).save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


class PillowEncoder(Encoder):
    name = "pillow"
    scale = QualityScale(minimum=10, maximum=100, start=92, step_down=5, step_up=3)
    resample = Image.Resampling.LANCZOS

    def prepare(self, source: bytes, width: int, height: int) -> Image.Image:
        img = open_image(source)
        logger.debug("Resizing %sx%s %s source to %sx%s", img.width, img.height, img.mode, width, height)
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA" if _has_alpha(img) else "RGB")
        try:
            return img.resize((width, height), self.resample)
        except (ValueError, OverflowError, MemoryError) as exc:
            raise EncodeError(f"Could not resize to {width}x{height}: {exc}") from exc

    def pillow_quality(self, quality: float) -> int:
        return int(round(quality))

    def encode(self, raster: Image.Image, quality: float, fmt: str) -> bytes:
        pil_format = PIL_FORMATS.get(fmt.lower()) if fmt else None
        if pil_format is None:
            raise UnsupportedFormat(fmt)
        try:
            return save_image(raster, pil_format, self.pillow_quality(quality))
        except (OSError, ValueError) as exc:
            raise EncodeError(f"{pil_format} encoding failed at quality {quality}: {exc}") from exc


class RasterEncoder(PillowEncoder):
    name = "raster"
    scale = QualityScale(minimum=0.1, maximum=1.0, start=0.92, step_down=0.05, step_up=0.03)
    resample = Image.Resampling.BILINEAR

    def prepare(self, source: bytes, width: int, height: int) -> Image.Image:
        drawn = super().prepare(source, width, height).convert("RGBA")
        canvas = Image.new("RGBA", (width, height), JPEG_BACKGROUND)
        canvas.alpha_composite(drawn)
        return canvas.convert("RGB")

    def pillow_quality(self, quality: float) -> int:
        return int(round(quality * 100))
