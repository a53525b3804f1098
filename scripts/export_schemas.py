"""Export JSON schemas for the HTTP request/response bodies and stream events."""

import json
import sys
from pathlib import Path

from pydantic import BaseModel, TypeAdapter

from backend.app.models.documents import ExtractRequest, ExtractResponse
from backend.app.models.events import StreamEvent
from backend.app.models.history import BriefingListResponse, CreateBriefingRequest
from backend.app.models.qa import (
    AnswerRequest,
    AnswerResponse,
    SummaryRequest,
    TranslationRequest,
    TranslationResponse,
)

API_MODELS: list[type[BaseModel]] = [
    ExtractRequest,
    ExtractResponse,
    SummaryRequest,
    TranslationRequest,
    TranslationResponse,
    AnswerRequest,
    AnswerResponse,
    CreateBriefingRequest,
    BriefingListResponse,
]


def export(schemas_dir: Path) -> list[Path]:
    """Write one ``<Name>.schema.json`` per model into ``schemas_dir``.

    Schemas use the camelCase wire names.
    """
    schemas_dir.mkdir(parents=True, exist_ok=True)
    written = []

    for model in API_MODELS:
        path = schemas_dir / f"{model.__name__}.schema.json"
        with open(path, "w") as f:
            json.dump(model.model_json_schema(by_alias=True), f, indent=2)
        written.append(path)

    events_path = schemas_dir / "StreamEvent.schema.json"
    with open(events_path, "w") as f:
        json.dump(TypeAdapter(StreamEvent).json_schema(), f, indent=2)
    written.append(events_path)

    return written


def main() -> None:
    """Export schemas to docs/schemas/ (or the directory given as argument)."""
    schemas_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("docs/schemas")
    for path in export(schemas_dir):
        print(f"Exported {path.stem} to {path}")


if __name__ == "__main__":
    main()
