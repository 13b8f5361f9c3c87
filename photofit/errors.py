"""Exception hierarchy shared by the service, the client and the CLI.

A search that runs out of attempts is not an error: it is reported through
``ProcessingResult.valid`` and never raised.
"""
from __future__ import annotations


class PhotofitError(Exception):
    """Base class for every error raised by photofit."""


class InvalidInput(PhotofitError, ValueError):
    """The request was rejected before any image processing began."""


class UnknownPreset(InvalidInput):
    def __init__(self, preset: str):
        super().__init__(f"Unknown preset: {preset!r}")
        self.preset = preset


class InvalidSpec(InvalidInput):
    """A derived or supplied target spec cannot ever be satisfied."""


class UploadTooLarge(InvalidInput):
    def __init__(self, size: int, limit: int):
        super().__init__(f"Upload of {size} bytes exceeds the {limit} byte limit.")
        self.size = size
        self.limit = limit


class DecodeError(PhotofitError):
    """The source image could not be read."""


class EncodeError(PhotofitError):
    """The encoder failed to produce output."""


class UnsupportedFormat(EncodeError):
    def __init__(self, fmt: str):
        super().__init__(f"Unsupported output format: {fmt!r}")
        self.format = fmt
