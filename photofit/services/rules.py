"""Turn a preset name or a free-text requirement into a :class:`TargetSpec`.

Free text is read leniently: dimensions, size range and format are searched
for independently and every field that cannot be found falls back to the
default photograph spec (200x230 pixels, 20-50 KB, JPG). Only the final
spec is validated, so text describing an impossible window (``50-20kb``)
is rejected with :class:`InvalidSpec`.
"""
from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Mapping

from pydantic import ValidationError

from photofit.errors import InvalidSpec, UnknownPreset
from photofit.models import TargetSpec

logger = logging.getLogger(__name__)

DEFAULT_RULE_TEXT = "Dimensions 200x230 pixels, size 20-50KB, JPG format"
CUSTOM_PRESET = "custom"

DEFAULT_WIDTH = 200
DEFAULT_HEIGHT = 230
DEFAULT_MIN_KB = 20
DEFAULT_MAX_KB = 50
DEFAULT_FORMAT = "jpg"

_DIMENSION_PATTERNS = (
    re.compile(r"(\d+)\s*x\s*(\d+)", re.IGNORECASE),
    re.compile(r"width[:\s]+(\d+).*height[:\s]+(\d+)", re.IGNORECASE),
)
_SIZE_PATTERNS = (
    re.compile(r"(\d+)\s*[-–]\s*(\d+)\s*kb", re.IGNORECASE),
    re.compile(r"size[:\s]+(\d+).*?(\d+)\s*kb", re.IGNORECASE),
)
_FORMAT_PATTERN = re.compile(r"\b(jpg|jpeg|png)\b", re.IGNORECASE)


def make_spec(**fields) -> TargetSpec:
    """Build a TargetSpec, reporting validation failures as InvalidSpec."""
    try:
        return TargetSpec(**fields)
    except ValidationError as exc:
        raise InvalidSpec(f"Invalid target spec {fields}: {exc.errors()[0]['msg']}") from exc


PRESETS: Mapping[str, TargetSpec] = MappingProxyType(
    {
        "photo": make_spec(width=200, height=230, min_kb=20, max_kb=50, format="jpg"),
        "signature": make_spec(width=140, height=60, min_kb=10, max_kb=20, format="jpg"),
        "thumb": make_spec(width=140, height=60, min_kb=20, max_kb=50, format="jpg"),
        "declaration": make_spec(width=800, height=300, min_kb=50, max_kb=100, format="jpg"),
    }
)

PRESET_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "photo": "Photograph",
        "signature": "Signature",
        "thumb": "Thumb Impression",
        "declaration": "Handwritten Declaration",
    }
)


def preset_spec(preset: str) -> TargetSpec:
    try:
        return PRESETS[preset]
    except KeyError:
        raise UnknownPreset(preset) from None


def _first_pair(patterns, text: str) -> tuple[int, int] | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return int(match.group(1)), int(match.group(2))
    return None


def parse_rule_text(text: str) -> TargetSpec:
    """Extract a spec from free text such as ``"200x230, 20-50kb, jpg"``."""

    dimensions = _first_pair(_DIMENSION_PATTERNS, text)
    size_range = _first_pair(_SIZE_PATTERNS, text)
    format_match = _FORMAT_PATTERN.search(text)

    width, height = dimensions or (DEFAULT_WIDTH, DEFAULT_HEIGHT)
    min_kb, max_kb = size_range or (DEFAULT_MIN_KB, DEFAULT_MAX_KB)
    fmt = format_match.group(1).lower() if format_match else DEFAULT_FORMAT

    logger.debug(
        "Parsed rule text %r -> %sx%s, %s-%s KB, %s", text, width, height, min_kb, max_kb, fmt
    )
    return make_spec(width=width, height=height, min_kb=min_kb, max_kb=max_kb, format=fmt)


def derive_spec(preset: str | None = None, rule_text: str | None = None) -> TargetSpec:
    """Resolve the spec for a request.

    A named preset wins over rule text. An empty preset or ``"custom"`` means
    the rule text is used, and blank rule text means the default rule.
    """

    if preset and preset != CUSTOM_PRESET:
        return preset_spec(preset)
    if rule_text and rule_text.strip():
        return parse_rule_text(rule_text)
    return parse_rule_text(DEFAULT_RULE_TEXT)
