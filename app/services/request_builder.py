from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional

from app.core.config import SUMMARY_TEMPERATURE
from app.core.errors import InvalidInputError
from app.schemas.contracts import (
    SUMMARY_SCHEMA,
    TRANSCRIPT_AND_SUMMARY_SCHEMA,
    ResponseSchema,
    Shape,
)


@dataclass(frozen=True)
class AudioPayload:
    data: bytes
    mime_type: str
    filename: Optional[str] = None


@dataclass(frozen=True)
class Attachment:
    data: str  # base64
    mime_type: str


@dataclass(frozen=True)
class RequestSpec:
    instruction: str
    schema: ResponseSchema
    shape: Shape
    temperature: float
    attachment: Optional[Attachment] = None


TEXT_PROMPT_TMPL = """You are an expert meeting assistant. Your task is to analyze the following meeting transcript and provide a concise summary, a list of key decisions, and a list of action items.

The output must be a valid JSON object that adheres to the provided schema.
- "summary": A paragraph summarizing the key discussion points, decisions made, and overall outcomes of the meeting.
- "keyDecisions": An array of strings, where each string is a significant decision made. If none were made, return an empty array.
- "actionItems": An array of strings, where each string is a clear, actionable task assigned to someone. If no clear action items are present, return an empty array.

Here is the transcript:
---
{transcript}
---
"""

AUDIO_PROMPT = (
    "Your task is to process an audio file of a meeting. "
    "First, provide a complete and accurate transcript of the audio. "
    "Second, based on the transcript, create a summary, identify key decisions, and list action items. "
    "Your entire output must be a single JSON object that adheres to the provided schema."
)


def is_audio_mime_type(mime_type: Optional[str]) -> bool:
    return bool(mime_type) and mime_type.strip().lower().startswith("audio/")


def build_text_summary_request(transcript: str) -> RequestSpec:
    if not transcript or not transcript.strip():
        raise InvalidInputError("Please enter a transcript to summarize.")

    return RequestSpec(
        instruction=TEXT_PROMPT_TMPL.format(transcript=transcript),
        schema=SUMMARY_SCHEMA,
        shape="summary",
        temperature=SUMMARY_TEMPERATURE,
    )


def build_audio_summary_request(audio: AudioPayload) -> RequestSpec:
    if not audio.data:
        raise InvalidInputError("The uploaded audio file is empty.")
    if not is_audio_mime_type(audio.mime_type):
        raise InvalidInputError(f"Unsupported file type: {audio.filename} ({audio.mime_type})")

    encoded = base64.b64encode(audio.data).decode("ascii")
    return RequestSpec(
        instruction=AUDIO_PROMPT,
        schema=TRANSCRIPT_AND_SUMMARY_SCHEMA,
        shape="transcript_and_summary",
        temperature=SUMMARY_TEMPERATURE,
        attachment=Attachment(data=encoded, mime_type=audio.mime_type.strip().lower()),
    )
