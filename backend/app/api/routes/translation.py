"""Translation endpoints - streamed and single-shot summary translation."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from backend.app.api.sse import SnapshotRelay, sse_response
from backend.app.llm.client import GenerationClient, get_llm_client
from backend.app.llm.flows import stream_translation, translate_summary, translate_text
from backend.app.middleware.ratelimit import enforce_rate_limit
from backend.app.models.qa import TextTranslationRequest, TranslationRequest, TranslationResponse

router = APIRouter(
    prefix="/translation", tags=["translation"], dependencies=[Depends(enforce_rate_limit)]
)


@router.post("/stream")
async def stream_translation_endpoint(
    request: TranslationRequest,
    client: Annotated[GenerationClient, Depends(get_llm_client)],
) -> StreamingResponse:
    """Stream a summary translation as SSE under the ``translation`` key.

    Each target language is its own client slot, so the relay is labelled
    per language.
    """
    relay = SnapshotRelay(
        stream_translation(client, request.summary, request.language),
        slot=f"translation:{request.language.value}",
        field="translated_text",
        payload_key="translation",
        default_error="Unable to stream translation.",
    )
    return sse_response(relay)


@router.post("", response_model=TranslationResponse)
async def create_translation(
    request: TranslationRequest,
    client: Annotated[GenerationClient, Depends(get_llm_client)],
) -> TranslationResponse:
    """Translate a summary in one call, preserving markdown."""
    output = await translate_summary(client, request.summary, request.language)
    return TranslationResponse(translation=output.translated_text, language=request.language)


@router.post("/text", response_model=TranslationResponse)
async def create_text_translation(
    request: TextTranslationRequest,
    client: Annotated[GenerationClient, Depends(get_llm_client)],
) -> TranslationResponse:
    """Translate arbitrary text in one call."""
    output = await translate_text(client, request.text, request.language)
    return TranslationResponse(translation=output.translated_text, language=request.language)
