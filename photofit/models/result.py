from __future__ import annotations

import base64

from pydantic import BaseModel, ConfigDict, Field

from .spec import MIME_TYPES, OutputFormat


class ProcessingResult(BaseModel):
    """Final encoding produced by one fitting run."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., repr=False)
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    size_kb: float = Field(..., ge=0)
    format: OutputFormat
    valid: bool
    quality: float
    attempts: int = Field(..., ge=1)

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self.format]

    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class ValidationReport(BaseModel):
    width: int
    height: int
    size_kb: float
    format: str
    valid: bool

    @classmethod
    def from_result(cls, result: ProcessingResult) -> "ValidationReport":
        return cls(
            width=result.width,
            height=result.height,
            size_kb=round(result.size_kb, 2),
            format=result.format.upper(),
            valid=result.valid,
        )


class ProcessResponse(BaseModel):
    """JSON payload returned by ``POST /api/process``."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = "success"
    width: int
    height: int
    file_size_kb: float = Field(..., alias="fileSizeKb")
    format: str
    valid: bool
    image_base64: str = Field(..., alias="imageBase64")  # data:image/...;base64,...

    @classmethod
    def from_result(cls, result: ProcessingResult) -> "ProcessResponse":
        report = ValidationReport.from_result(result)
        return cls(
            width=report.width,
            height=report.height,
            file_size_kb=report.size_kb,
            format=report.format,
            valid=report.valid,
            image_base64=result.data_uri(),
        )
