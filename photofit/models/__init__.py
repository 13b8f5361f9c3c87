from .result import ProcessingResult, ProcessResponse, ValidationReport
from .spec import MAX_DIMENSION, MIME_TYPES, PIL_FORMATS, OutputFormat, TargetSpec

__all__ = [
    "MAX_DIMENSION",
    "MIME_TYPES",
    "PIL_FORMATS",
    "OutputFormat",
    "ProcessingResult",
    "ProcessResponse",
    "TargetSpec",
    "ValidationReport",
]
