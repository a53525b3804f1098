"""Q&A endpoints - language detection and document question answering."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from backend.app.llm.client import GenerationClient, get_llm_client
from backend.app.llm.flows import answer_question, detect_language
from backend.app.middleware.ratelimit import enforce_rate_limit
from backend.app.models.qa import (
    AnswerRequest,
    AnswerResponse,
    DetectLanguageRequest,
    DetectLanguageResponse,
)

router = APIRouter(prefix="/qa", tags=["qa"], dependencies=[Depends(enforce_rate_limit)])
logger = logging.getLogger(__name__)


@router.post("/detect-language", response_model=DetectLanguageResponse)
async def detect_language_endpoint(
    request: DetectLanguageRequest,
    client: Annotated[GenerationClient, Depends(get_llm_client)],
) -> DetectLanguageResponse:
    """Detect whether text is English, Hindi or Telugu ("Unknown" otherwise)."""
    language = await detect_language(client, request.text)
    return DetectLanguageResponse(language=language)


@router.post("/answer", response_model=AnswerResponse)
async def answer_endpoint(
    request: AnswerRequest,
    client: Annotated[GenerationClient, Depends(get_llm_client)],
) -> AnswerResponse:
    """Answer a question about a document in the question's language.

    The previous assistant answer, when given, is passed as conversational
    context.

    Raises:
        InvalidInputError: If the question's language cannot be determined (400)
        GenerationError: If the model call fails (502)
    """
    output, language = await answer_question(
        client,
        document_text=request.document_text,
        question=request.question,
        previous_answer=request.previous_answer,
    )
    logger.info(f"Answered question in {language}")
    return AnswerResponse(answer=output.answer, language=language)
