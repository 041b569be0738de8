from __future__ import annotations

import asyncio
import json
from typing import List, Optional

import pytest

from app.services.orchestrator import SummarizationOrchestrator
from app.services.request_builder import AudioPayload, RequestSpec


SCENARIO_A_TEXT = "Alice will send the report by Friday. We decided to delay launch."
SCENARIO_A_REPLY = json.dumps(
    {
        "summary": "The team agreed to delay the launch; Alice owns the report.",
        "keyDecisions": ["Delay launch"],
        "actionItems": ["Alice to send report by Friday"],
    }
)


class FakeGateway:
    """
    Stand-in for LlmGateway.

    Returns `reply` (or raises `error`). When `hold` is set the call blocks on
    an asyncio.Event until the test calls `release()`.
    """

    def __init__(self, reply: str = SCENARIO_A_REPLY, error: Optional[BaseException] = None, hold: bool = False):
        self.reply = reply
        self.error = error
        self.calls: List[RequestSpec] = []
        self._gate: Optional[asyncio.Event] = asyncio.Event() if hold else None

    async def send(self, spec: RequestSpec, request_id: str = "-") -> str:
        self.calls.append(spec)
        if self._gate is not None:
            await self._gate.wait()
        if self.error is not None:
            raise self.error
        return self.reply

    def release(self) -> None:
        assert self._gate is not None
        self._gate.set()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def orchestrator(gateway):
    return SummarizationOrchestrator(gateway)


@pytest.fixture()
def wav_audio():
    return AudioPayload(data=b"RIFF\x00\x00\x00\x00WAVEfmt ", mime_type="audio/wav", filename="standup.wav")
