from __future__ import annotations

import json
from typing import Any, Union

from pydantic import ValidationError

from app.core.errors import MalformedResponseError, SchemaViolationError
from app.schemas.contracts import SCHEMAS, ResponseSchema, Shape
from app.schemas.summarize import SummaryResult, TranscriptionAndSummaryReply, TranscriptionAndSummaryResult

ValidatedResult = Union[SummaryResult, TranscriptionAndSummaryResult]


def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        if err["type"] == "missing":
            parts.append(f"Missing required field {loc!r}")
        else:
            parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def _default_missing_arrays(payload: Any, schema: ResponseSchema) -> Any:
    """Lenient mode: an absent array field reads as "nothing found"."""
    if not isinstance(payload, dict):
        return payload
    missing = [name for name in schema.array_fields if name not in payload]
    return dict(payload, **{name: [] for name in missing}) if missing else payload


def validate(raw_text: str, shape: Shape, *, strict: bool = True) -> ValidatedResult:
    """
    Parse a backend reply and check it against the shape's contract model.

    An absent array field is a violation; an explicit [] is valid. With
    strict=False an absent array field is read as empty (string fields are
    always required). No coercion: the model runs in pydantic strict mode.
    """
    try:
        schema = SCHEMAS[shape]
    except KeyError:
        raise ValueError(f"Unknown response shape: {shape!r}") from None

    try:
        payload = json.loads(raw_text)
    except (ValueError, RecursionError, TypeError) as e:
        raise MalformedResponseError(f"Response is not valid JSON: {type(e).__name__}") from e

    if not isinstance(payload, dict):
        raise SchemaViolationError(f"Expected a JSON object, got {type(payload).__name__}")

    if not strict:
        payload = _default_missing_arrays(payload, schema)
        raw_text = json.dumps(payload)

    try:
        # JSON mode: strict validation still accepts JSON arrays for tuple fields
        reply = schema.model.model_validate_json(raw_text)
    except ValidationError as e:
        if any(err["type"] == "json_invalid" for err in e.errors()):
            raise MalformedResponseError(_describe(e)) from e
        raise SchemaViolationError(_describe(e)) from e

    if isinstance(reply, TranscriptionAndSummaryReply):
        return reply.to_result()
    return reply
