"""
Response contracts keyed by shape.

The pydantic models in `app.schemas.summarize` are the only declaration of
each output shape: the gateway sends `model_json_schema()` to the backend
and the validator checks replies with the same model. Field descriptions
only steer generation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Tuple, Type, get_origin

from app.schemas.summarize import SummaryResult, TranscriptionAndSummaryReply

Shape = Literal["summary", "transcript_and_summary"]


@dataclass(frozen=True)
class ResponseSchema:
    name: str
    model: Type[SummaryResult]

    def to_json_schema(self) -> Dict[str, Any]:
        return self.model.model_json_schema(by_alias=True)

    @property
    def required(self) -> Tuple[str, ...]:
        return tuple(self.to_json_schema()["required"])

    @property
    def array_fields(self) -> Tuple[str, ...]:
        return tuple(
            f.alias or name
            for name, f in self.model.model_fields.items()
            if get_origin(f.annotation) is tuple
        )


SUMMARY_SCHEMA = ResponseSchema(name="meeting_summary", model=SummaryResult)

TRANSCRIPT_AND_SUMMARY_SCHEMA = ResponseSchema(
    name="meeting_transcript_and_summary",
    model=TranscriptionAndSummaryReply,
)

SCHEMAS: Dict[str, ResponseSchema] = {
    "summary": SUMMARY_SCHEMA,
    "transcript_and_summary": TRANSCRIPT_AND_SUMMARY_SCHEMA,
}
