"""Extraction endpoint - POST /extract (data URI in, plain text out)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from backend.app.extraction.dispatcher import DocumentDecoder, get_document_decoder
from backend.app.middleware.ratelimit import enforce_rate_limit
from backend.app.models.documents import ExtractRequest, ExtractResponse

router = APIRouter(tags=["extract"], dependencies=[Depends(enforce_rate_limit)])
logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_NAME = "document"


@router.post("/extract", response_model=ExtractResponse)
async def extract_text(
    request: ExtractRequest,
    decoder: Annotated[DocumentDecoder, Depends(get_document_decoder)],
) -> ExtractResponse:
    """Extract plain text from an uploaded file.

    Args:
        request: Data URI of the file and its optional name
        decoder: Document decoder

    Returns:
        Extracted text with the resolved media type

    Raises:
        InvalidInputError: Malformed data URI (400)
        UnsupportedTypeError: File type outside PDF/DOCX/PPTX/JPG/PNG (415)
        ExtractionEmptyError: Nothing usable could be extracted (422)
    """
    result = await decoder.decode(request.file_data_uri)
    name = request.file_name or DEFAULT_DOCUMENT_NAME
    logger.info(f"Extracted {len(result.text)} chars from {name} via {result.method}")
    return ExtractResponse(name=name, text=result.text, media_type=result.media_type)
