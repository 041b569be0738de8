from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from app.core import config
from app.core.errors import BackendError, ConfigurationError
from app.core.logging import get_logger
from app.services.request_builder import Attachment, RequestSpec

log = get_logger(__name__)

# chat-completions `input_audio.format` values, keyed by media subtype
_AUDIO_FORMATS = {
    "mpeg": "mp3",
    "mp3": "mp3",
    "wav": "wav",
    "wave": "wav",
    "x-wav": "wav",
    "vnd.wave": "wav",
    "mp4": "m4a",
    "x-m4a": "m4a",
    "m4a": "m4a",
    "ogg": "ogg",
    "webm": "webm",
    "flac": "flac",
    "x-flac": "flac",
}


class Gateway(Protocol):
    async def send(self, spec: RequestSpec, request_id: str = "-") -> str:
        ...


def audio_format(mime_type: str) -> str:
    subtype = mime_type.split(";", 1)[0].strip().lower().split("/", 1)[-1]
    return _AUDIO_FORMATS.get(subtype, subtype)


def _content_parts(spec: RequestSpec) -> List[Dict[str, Any]]:
    parts: List[Dict[str, Any]] = []
    if spec.attachment is not None:
        parts.append(_audio_part(spec.attachment))
    parts.append({"type": "text", "text": spec.instruction})
    return parts


def _audio_part(attachment: Attachment) -> Dict[str, Any]:
    return {
        "type": "input_audio",
        "input_audio": {"data": attachment.data, "format": audio_format(attachment.mime_type)},
    }


class LlmGateway:
    """Sends a built request to an OpenAI-compatible backend and returns raw text."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        text_model: str = config.OPENAI_TEXT_MODEL,
        audio_model: str = config.OPENAI_AUDIO_MODEL,
    ):
        if not api_key:
            raise ConfigurationError("Missing OPENAI_API_KEY in .env")

        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or None)
        self.text_model = text_model
        self.audio_model = audio_model

    def model_for(self, spec: RequestSpec) -> str:
        return self.audio_model if spec.attachment is not None else self.text_model

    async def send(self, spec: RequestSpec, request_id: str = "-") -> str:
        model = self.model_for(spec)
        log.info(f"[{request_id}] calling_llm model={model} shape={spec.shape} attachment={spec.attachment is not None}")

        try:
            resp = await self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": _content_parts(spec)}],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": spec.schema.name,
                        "schema": spec.schema.to_json_schema(),
                        "strict": True,
                    },
                },
                temperature=spec.temperature,
            )
        except OpenAIError as e:
            log.warning(f"[{request_id}] llm_error: {type(e).__name__}: {e}")
            raise BackendError(f"Backend call failed: {type(e).__name__}") from e

        content = resp.choices[0].message.content if resp.choices else None
        text = (content or "").strip()
        if not text:
            raise BackendError("Backend returned an empty response")

        log.debug(f"[{request_id}] LLM_RAW: {text}")
        return text


def gateway_from_env() -> LlmGateway:
    return LlmGateway(
        api_key=config.OPENAI_API_KEY,
        base_url=config.OPENAI_BASE_URL,
        text_model=config.OPENAI_TEXT_MODEL,
        audio_model=config.OPENAI_AUDIO_MODEL,
    )
