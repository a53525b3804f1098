"""Prompt templates for summary, translation, Q&A and language detection.

Each template declares the pydantic model its output must conform to and the
string field that carries streamed text.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from backend.app.models.common import TranslationLanguage
from backend.app.models.generation import (
    AnswerOutput,
    LanguageDetection,
    SummaryOutput,
    TranslationOutput,
)


@dataclass(frozen=True)
class PromptTemplate:
    """A named, parameterized instruction with a declared output shape."""

    name: str
    system: str
    template: str
    output_model: type[BaseModel]
    text_field: str

    def render(self, **params: Any) -> str:
        """Fill the user template; missing optional params render as empty strings."""
        return self.template.format_map(_fill(params))

    def render_system(self, **params: Any) -> str:
        """Fill the system instruction with the same params."""
        return self.system.format_map(_fill(params))

    def messages(self, **params: Any) -> list[dict[str, str]]:
        """Chat messages for this prompt."""
        return [
            {"role": "system", "content": self.render_system(**params)},
            {"role": "user", "content": self.render(**params)},
        ]


def _fill(params: dict[str, Any]) -> "_DefaultDict":
    return _DefaultDict({key: "" if value is None else value for key, value in params.items()})


class _DefaultDict(dict[str, Any]):
    def __missing__(self, key: str) -> str:
        return ""


SUMMARIZE_DOCUMENT = PromptTemplate(
    name="summarize_legal_document",
    system=(
        "You are a legal expert who explains complex legal documents to non-experts. "
        "Write in clear, plain language and explain any legal jargon you keep.\n\n"
        "Structure the summary with headings and bullet points covering key clauses, "
        "each party's main rights and obligations, important dates or deadlines, and any "
        "conditions, limitations or penalties. Use **bold** for key terms and section "
        "titles. Summarize only what the document states; do not interpret beyond it."
    ),
    template="Here is the legal document to summarize:\n\n{document_text}",
    output_model=SummaryOutput,
    text_field="summary",
)

_TRANSLATE_SUMMARY_SYSTEM = (
    "You are a professional legal translator. Translate the summary of a legal document "
    "into {language}, faithfully and fluently, using appropriate legal terminology. "
    "Do not add or omit information.\n\n"
    "Preserve the original markdown formatting exactly: headings (#), bullet markers "
    "(- or *), numbering and bold markers (**) must stay in the same positions. "
    "Keep a formal, professional tone."
)

TRANSLATE_SUMMARY = {
    language: PromptTemplate(
        name=f"translate_summary_{language.value}",
        system=_TRANSLATE_SUMMARY_SYSTEM.format(language=language.display_name),
        template="Original summary:\n\n{summary}",
        output_model=TranslationOutput,
        text_field="translated_text",
    )
    for language in TranslationLanguage
}

TRANSLATE_TEXT = {
    language: PromptTemplate(
        name=f"translate_text_{language.value}",
        system=f"Translate the user's text into {language.display_name}.",
        template="{text}",
        output_model=TranslationOutput,
        text_field="translated_text",
    )
    for language in TranslationLanguage
}

DETECT_LANGUAGE = PromptTemplate(
    name="detect_language",
    system=(
        "Detect the language of the user's text. The possible languages are English, "
        'Hindi and Telugu. If you cannot determine the language, answer "Unknown".'
    ),
    template="Text: {text}",
    output_model=LanguageDetection,
    text_field="language",
)

ANSWER_QUESTION = PromptTemplate(
    name="answer_questions_document",
    system=(
        "You are a legal expert. The user asks questions in {target_language} and your "
        "entire response must be written in {target_language}.\n\n"
        "Answer strictly from the provided legal document. Be clear and direct, define any "
        "legal jargon you use, use bullet points or numbered lists for multiple ideas, and "
        "**bold** key terms, figures, deadlines and conditions. If a previous answer is "
        "given, improve on it with clarifications, corrections or missing details instead "
        "of repeating it."
    ),
    template=(
        "Legal document:\n{document_text}\n\n"
        "Question:\n{question}\n\n"
        "Previous answer (if any):\n{previous_answer}\n\n"
        "Answer in {target_language}:"
    ),
    output_model=AnswerOutput,
    text_field="answer",
)

EXTRACT_TEXT_INSTRUCTION = (
    "You are an expert at extracting text from documents. "
    "Extract all the text from the following file. Return only the text."
)
