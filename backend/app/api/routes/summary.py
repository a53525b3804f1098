"""Summary endpoints - POST /summary/stream (SSE) and POST /summary."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from backend.app.api.sse import SnapshotRelay, sse_response
from backend.app.llm.client import GenerationClient, get_llm_client
from backend.app.llm.flows import stream_summary, summarize_document
from backend.app.middleware.ratelimit import enforce_rate_limit
from backend.app.models.qa import SummaryRequest, SummaryResponse

router = APIRouter(prefix="/summary", tags=["summary"], dependencies=[Depends(enforce_rate_limit)])


@router.post("/stream")
async def stream_summary_endpoint(
    request: SummaryRequest,
    client: Annotated[GenerationClient, Depends(get_llm_client)],
) -> StreamingResponse:
    """Stream a document summary as SSE.

    Emits ``progress`` frames carrying full summary snapshots under the
    ``summary`` key, then exactly one ``done`` or ``error`` frame.
    """
    relay = SnapshotRelay(
        stream_summary(client, request.document_text),
        slot="summary",
        field="summary",
        payload_key="summary",
        default_error="Unable to stream summary.",
    )
    return sse_response(relay)


@router.post("", response_model=SummaryResponse)
async def create_summary(
    request: SummaryRequest,
    client: Annotated[GenerationClient, Depends(get_llm_client)],
) -> SummaryResponse:
    """Summarize a document in one call."""
    output = await summarize_document(client, request.document_text)
    return SummaryResponse(summary=output.summary)
