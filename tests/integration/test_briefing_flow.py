"""End-to-end client flows against the app over an in-process transport."""

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from backend.app.db.context import RequestContext
from backend.app.db.inmemory import InMemoryBriefingRepository
from backend.app.main import app
from backend.app.models.common import TranslationLanguage
from backend.app.models.documents import Document
from ui.session import BriefingSession, QASession, SlotStatus
from ui.streaming import StreamOutcome, consume_sse

DOCUMENT = Document(
    name="rental-agreement.docx",
    text=(
        "This Rental Agreement is made between the Landlord and the Tenant. "
        "The Tenant shall pay a monthly rent of 12,000 rupees and a deposit of 24,000 rupees. "
        "The agreement may be terminated by either party with one month's notice."
    ),
)


@pytest_asyncio.fixture
async def client(override_dependencies: None) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.mark.asyncio
async def test_consumer_reads_relay_output(client: httpx.AsyncClient) -> None:
    progress: list[str] = []
    done: list[str] = []

    outcome = await consume_sse(
        client,
        "/summary/stream",
        {"documentText": DOCUMENT.text},
        on_progress=progress.append,
        on_done=done.append,
    )

    assert outcome is StreamOutcome.COMPLETED
    assert len(progress) >= 1
    assert len(done) == 1
    assert done[0] == progress[-1]
    assert "**Overview**" in done[0]


@pytest.mark.asyncio
async def test_full_briefing_session(
    client: httpx.AsyncClient,
    briefing_repository: InMemoryBriefingRepository,
    test_context: RequestContext,
) -> None:
    session = BriefingSession(client, DOCUMENT, access_token="token")

    await session.start_summary()
    await session.start_translation(TranslationLanguage.hindi)
    await session.start_translation(TranslationLanguage.telugu)

    assert session.summary_status is SlotStatus.ready
    assert session.summary.startswith("# Document Summary")
    assert session.translations[TranslationLanguage.hindi] == session.summary
    assert session.translation_status[TranslationLanguage.telugu] is SlotStatus.ready

    assert session.history_record is not None
    assert session.history_record.user_id == test_context.user_id
    stored = await briefing_repository.list_briefings(test_context)
    assert [(r.file_name, r.summary) for r in stored] == [
        ("rental-agreement.docx", session.summary)
    ]


@pytest.mark.asyncio
async def test_qa_conversation(client: httpx.AsyncClient) -> None:
    qa = QASession(client, DOCUMENT.text)

    answer = await qa.ask("What is the deposit?")
    follow_up = await qa.ask("డిపాజిట్ ఎంత?")

    assert "Answer language: English" in answer.content
    assert "Answer language: Telugu" in follow_up.content
    assert len(qa.messages) == 4
