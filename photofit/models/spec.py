from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

OutputFormat = Literal["jpg", "jpeg", "png"]

# Output format -> Pillow format name
PIL_FORMATS: dict[str, str] = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
}

MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}

# Largest accepted target width or height, in pixels
MAX_DIMENSION = 10_000


class TargetSpec(BaseModel):
    """Pixel dimensions, size window and format an image must be fit to."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., ge=1, le=MAX_DIMENSION)
    height: int = Field(..., ge=1, le=MAX_DIMENSION)
    min_kb: float = Field(..., ge=0)
    max_kb: float = Field(..., gt=0)
    format: OutputFormat = "jpg"

    @model_validator(mode="after")
    def _check_window(self) -> "TargetSpec":
        if self.min_kb > self.max_kb:
            raise ValueError(f"min_kb ({self.min_kb}) is larger than max_kb ({self.max_kb})")
        return self
