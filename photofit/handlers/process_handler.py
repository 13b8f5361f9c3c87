"""Image processing endpoint."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from photofit.config import get_settings
from photofit.errors import DecodeError, EncodeError, InvalidInput, UploadTooLarge
from photofit.models import ProcessResponse
from photofit.services.encoders import get_encoder
from photofit.services.fitting import fit_to_spec
from photofit.services.rules import derive_spec
from photofit.services.uploads import stored_upload, validate_upload

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


def _failure(status_code: int, exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": "Failed to process image", "details": str(exc)},
    )


@router.post("/process", response_model=ProcessResponse)
def process_image(
    image: UploadFile = File(...),
    preset: Optional[str] = Form(None),
    rule_text: Optional[str] = Form(None, alias="ruleText"),
):
    """Fit the uploaded image to a preset or to a free-text rule."""
    settings = get_settings()

    # read one byte past the limit so oversized uploads are detected without reading them whole
    data = image.file.read(settings.max_upload_bytes + 1)
    try:
        validate_upload(data, image.content_type, max_bytes=settings.max_upload_bytes)
        spec = derive_spec(preset, rule_text)
    except UploadTooLarge as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    except InvalidInput as exc:
        logger.info("Rejected upload %r: %s", image.filename, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    with stored_upload(data, image.filename, upload_dir=settings.upload_dir) as path:
        try:
            result = fit_to_spec(
                path.read_bytes(),
                spec,
                encoder=get_encoder(settings.default_encoder),
                max_attempts=settings.max_attempts,
            )
        except DecodeError as exc:
            logger.warning("Unreadable upload %r: %s", image.filename, exc)
            raise _failure(422, exc) from exc
        except EncodeError as exc:
            logger.exception("Processing error: %s", exc)
            raise _failure(500, exc) from exc

    logger.info(
        "Processed %r -> %sx%s %.2f KB %s (valid=%s, attempts=%d)",
        image.filename,
        result.width,
        result.height,
        result.size_kb,
        result.format,
        result.valid,
        result.attempts,
    )
    return ProcessResponse.from_result(result)
