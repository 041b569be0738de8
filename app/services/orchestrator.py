from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Literal, Optional, Union

from app.core.config import VALIDATION_STRICT
from app.core.errors import (
    BackendError,
    InvalidInputError,
    RequestInFlightError,
    SummarizationError,
)
from app.core.logging import get_logger, new_request_id
from app.schemas.summarize import SummaryResult, TranscriptionAndSummaryResult
from app.services.llm_client import Gateway
from app.services.request_builder import (
    AudioPayload,
    RequestSpec,
    build_audio_summary_request,
    build_text_summary_request,
)
from app.services.validators import validate

log = get_logger(__name__)

Modality = Literal["text", "audio"]


@dataclass(frozen=True)
class Idle:
    status: Literal["idle"] = "idle"


@dataclass(frozen=True)
class Loading:
    generation: int
    modality: Modality
    status: Literal["loading"] = "loading"


@dataclass(frozen=True)
class Success:
    result: SummaryResult
    transcript: Optional[str] = None
    audio: Optional[AudioPayload] = None
    status: Literal["success"] = "success"


@dataclass(frozen=True)
class Failed:
    error: SummarizationError
    message: str
    status: Literal["error"] = "error"


OrchestrationState = Union[Idle, Loading, Success, Failed]


class SummarizationOrchestrator:
    """
    Drives one session's idle -> loading -> success/error state machine.

    At most one request may be in flight. Each request is tagged with a
    generation; a completion whose generation is no longer current (after
    `reset()`) is dropped instead of applied.
    """

    def __init__(self, gateway: Gateway, *, strict_validation: bool = VALIDATION_STRICT):
        self._gateway = gateway
        self._strict = strict_validation
        self._state: OrchestrationState = Idle()
        self._generation = 0

    @property
    def state(self) -> OrchestrationState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        return isinstance(self._state, Loading)

    async def summarize_text(self, transcript: str) -> OrchestrationState:
        if not transcript or not transcript.strip():
            raise InvalidInputError("Please enter a transcript to summarize.")

        generation = self._begin("text")
        request_id = new_request_id()
        log.info(f"[{request_id}] summarize_text START generation={generation} chars={len(transcript)}")

        try:
            spec = build_text_summary_request(transcript)
            result = await self._run(spec, request_id)
        except asyncio.CancelledError:
            self._abandon(generation, request_id)
            raise
        except SummarizationError as e:
            return self._settle(generation, self._failed(e, request_id), request_id)
        except Exception as e:
            return self._settle(generation, self._unexpected(e, request_id), request_id)

        return self._settle(generation, Success(result=result), request_id)

    async def summarize_audio(self, audio: AudioPayload) -> OrchestrationState:
        generation = self._begin("audio")
        request_id = new_request_id()
        log.info(
            f"[{request_id}] summarize_audio START generation={generation} "
            f"mime={audio.mime_type!r} bytes={len(audio.data or b'')}"
        )

        try:
            spec = build_audio_summary_request(audio)
            result = await self._run(spec, request_id)
        except asyncio.CancelledError:
            self._abandon(generation, request_id)
            raise
        except SummarizationError as e:
            return self._settle(generation, self._failed(e, request_id), request_id)
        except Exception as e:
            return self._settle(generation, self._unexpected(e, request_id), request_id)

        return self._settle(
            generation,
            Success(result=result.summary, transcript=result.transcript, audio=audio),
            request_id,
        )

    def reset(self) -> OrchestrationState:
        if self.is_loading:
            log.info(f"reset while loading; generation={self._generation} will be discarded")
        self._generation += 1
        self._state = Idle()
        return self._state

    def _begin(self, modality: Modality) -> int:
        if self.is_loading:
            raise RequestInFlightError("A summarization request is already in flight")
        self._generation += 1
        self._state = Loading(generation=self._generation, modality=modality)
        return self._generation

    async def _run(self, spec: RequestSpec, request_id: str) -> Union[SummaryResult, TranscriptionAndSummaryResult]:
        raw = await self._gateway.send(spec, request_id=request_id)
        log.info(f"[{request_id}] gateway_returned chars={len(raw)}")
        return validate(raw, spec.shape, strict=self._strict)

    def _failed(self, error: SummarizationError, request_id: str) -> Failed:
        log.warning(f"[{request_id}] summarize FAILED kind={error.kind}: {error}")
        return Failed(error=error, message=error.user_message)

    def _unexpected(self, error: Exception, request_id: str) -> Failed:
        log.exception(f"[{request_id}] summarize_unexpected_error: {type(error).__name__}")
        wrapped = BackendError(f"Unexpected failure: {type(error).__name__}")
        wrapped.__cause__ = error
        return Failed(error=wrapped, message=wrapped.user_message)

    def _settle(self, generation: int, state: OrchestrationState, request_id: str) -> OrchestrationState:
        if generation != self._generation:
            log.info(
                f"[{request_id}] stale completion dropped generation={generation} current={self._generation}"
            )
            return self._state

        self._state = state
        log.info(f"[{request_id}] summarize END status={state.status}")
        return self._state

    def _abandon(self, generation: int, request_id: str) -> None:
        if generation == self._generation:
            log.info(f"[{request_id}] cancelled generation={generation}")
            self._state = Idle()
