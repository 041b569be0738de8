import asyncio
import json

import pytest

from app.core.errors import (
    BackendError,
    InvalidInputError,
    MalformedResponseError,
    RequestInFlightError,
    SchemaViolationError,
)
from app.services.orchestrator import Failed, Idle, Loading, SummarizationOrchestrator, Success
from app.services.request_builder import AudioPayload

from conftest import SCENARIO_A_REPLY, SCENARIO_A_TEXT, FakeGateway


@pytest.mark.asyncio
async def test_scenario_a_text_success(orchestrator, gateway):
    state = await orchestrator.summarize_text(SCENARIO_A_TEXT)

    assert isinstance(state, Success)
    assert state.result.key_decisions == ("Delay launch",)
    assert state.result.action_items == ("Alice to send report by Friday",)
    assert state.result.summary
    assert state.transcript is None
    assert state.audio is None
    assert SCENARIO_A_TEXT in gateway.calls[0].instruction


@pytest.mark.asyncio
@pytest.mark.parametrize("blank", ["", "   ", "\n"])
async def test_blank_text_rejected_without_transition(orchestrator, gateway, blank):
    generation = orchestrator.generation
    with pytest.raises(InvalidInputError):
        await orchestrator.summarize_text(blank)

    assert isinstance(orchestrator.state, Idle)
    assert orchestrator.generation == generation
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_blank_text_keeps_previous_result(orchestrator):
    await orchestrator.summarize_text(SCENARIO_A_TEXT)
    with pytest.raises(InvalidInputError):
        await orchestrator.summarize_text(" ")
    assert isinstance(orchestrator.state, Success)


@pytest.mark.asyncio
async def test_scenario_b_audio_backend_error(wav_audio):
    orchestrator = SummarizationOrchestrator(FakeGateway(error=BackendError("connection reset")))
    state = await orchestrator.summarize_audio(wav_audio)

    assert isinstance(state, Failed)
    assert isinstance(state.error, BackendError)
    assert state.message == BackendError.user_message
    assert not hasattr(state, "transcript")


@pytest.mark.asyncio
async def test_scenario_c_non_json(orchestrator, gateway):
    gateway.reply = "not json"
    state = await orchestrator.summarize_text(SCENARIO_A_TEXT)

    assert isinstance(state, Failed)
    assert isinstance(state.error, MalformedResponseError)


@pytest.mark.asyncio
async def test_missing_action_items_fails(orchestrator, gateway):
    gateway.reply = json.dumps({"summary": "s", "keyDecisions": []})
    state = await orchestrator.summarize_text(SCENARIO_A_TEXT)

    assert isinstance(state, Failed)
    assert isinstance(state.error, SchemaViolationError)


@pytest.mark.asyncio
async def test_empty_action_items_succeeds(orchestrator, gateway):
    gateway.reply = json.dumps({"summary": "s", "keyDecisions": [], "actionItems": []})
    state = await orchestrator.summarize_text(SCENARIO_A_TEXT)

    assert isinstance(state, Success)
    assert state.result.action_items == ()


@pytest.mark.asyncio
async def test_unexpected_gateway_exception_becomes_backend_error(orchestrator, gateway):
    gateway.error = RuntimeError("boom")
    state = await orchestrator.summarize_text(SCENARIO_A_TEXT)

    assert isinstance(state, Failed)
    assert isinstance(state.error, BackendError)


@pytest.mark.asyncio
async def test_audio_success_carries_transcript_and_audio(orchestrator, gateway, wav_audio):
    gateway.reply = json.dumps(
        {
            "transcript": "Alice: I will send the report by Friday.",
            "summary": "Report due Friday.",
            "keyDecisions": [],
            "actionItems": ["Alice to send report by Friday"],
        }
    )
    state = await orchestrator.summarize_audio(wav_audio)

    assert isinstance(state, Success)
    assert state.transcript == "Alice: I will send the report by Friday."
    assert state.result.summary == "Report due Friday."
    assert state.audio is wav_audio
    assert gateway.calls[0].attachment is not None


@pytest.mark.asyncio
async def test_empty_audio_fails_after_loading(orchestrator, gateway):
    state = await orchestrator.summarize_audio(AudioPayload(data=b"", mime_type="audio/wav"))

    assert isinstance(state, Failed)
    assert isinstance(state.error, InvalidInputError)
    assert orchestrator.generation == 1
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_loading_is_observable_and_clears_previous_result(orchestrator):
    await orchestrator.summarize_text(SCENARIO_A_TEXT)
    held = FakeGateway(hold=True)
    orchestrator._gateway = held

    task = asyncio.create_task(orchestrator.summarize_text(SCENARIO_A_TEXT))
    await asyncio.sleep(0)
    assert isinstance(orchestrator.state, Loading)
    assert orchestrator.state.modality == "text"

    held.release()
    state = await task
    assert isinstance(state, Success)


@pytest.mark.asyncio
async def test_second_call_while_loading_is_rejected(wav_audio):
    held = FakeGateway(hold=True)
    orchestrator = SummarizationOrchestrator(held)

    task = asyncio.create_task(orchestrator.summarize_text(SCENARIO_A_TEXT))
    await asyncio.sleep(0)

    with pytest.raises(RequestInFlightError):
        await orchestrator.summarize_audio(wav_audio)
    assert isinstance(orchestrator.state, Loading)

    held.release()
    assert isinstance(await task, Success)
    assert len(held.calls) == 1


@pytest.mark.asyncio
async def test_reset_while_loading_discards_stale_completion():
    held = FakeGateway(hold=True)
    orchestrator = SummarizationOrchestrator(held)

    task = asyncio.create_task(orchestrator.summarize_text(SCENARIO_A_TEXT))
    await asyncio.sleep(0)
    orchestrator.reset()
    assert isinstance(orchestrator.state, Idle)

    held.release()
    await task
    assert isinstance(orchestrator.state, Idle)


@pytest.mark.asyncio
async def test_stale_completion_does_not_overwrite_newer_call():
    slow = FakeGateway(hold=True)
    orchestrator = SummarizationOrchestrator(slow)

    first = asyncio.create_task(orchestrator.summarize_text(SCENARIO_A_TEXT))
    await asyncio.sleep(0)
    orchestrator.reset()

    orchestrator._gateway = FakeGateway(reply="not json")
    second = await orchestrator.summarize_text("Second meeting notes.")
    assert isinstance(second, Failed)

    slow.release()
    await first
    assert isinstance(orchestrator.state, Failed)
    assert isinstance(orchestrator.state.error, MalformedResponseError)


@pytest.mark.asyncio
async def test_cancelled_call_returns_to_idle():
    held = FakeGateway(hold=True)
    orchestrator = SummarizationOrchestrator(held)

    task = asyncio.create_task(orchestrator.summarize_text(SCENARIO_A_TEXT))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert isinstance(orchestrator.state, Idle)


@pytest.mark.asyncio
async def test_reset_from_every_state(orchestrator, gateway):
    assert isinstance(orchestrator.reset(), Idle)

    await orchestrator.summarize_text(SCENARIO_A_TEXT)
    assert isinstance(orchestrator.reset(), Idle)

    gateway.reply = "not json"
    await orchestrator.summarize_text(SCENARIO_A_TEXT)
    assert isinstance(orchestrator.state, Failed)
    assert orchestrator.reset() == Idle()


@pytest.mark.asyncio
async def test_reset_is_idempotent(orchestrator):
    await orchestrator.summarize_text(SCENARIO_A_TEXT)
    once = orchestrator.reset()
    twice = orchestrator.reset()
    assert once == twice == Idle()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    ['{"summary": ' + "1" * 5000 + "}", "[" * 100000 + "]" * 100000],
)
async def test_unparseable_reply_settles_and_next_call_runs(orchestrator, gateway, reply):
    gateway.reply = reply
    state = await orchestrator.summarize_text(SCENARIO_A_TEXT)

    assert isinstance(state, Failed)
    assert isinstance(state.error, MalformedResponseError)
    assert not orchestrator.is_loading

    gateway.reply = SCENARIO_A_REPLY
    assert isinstance(await orchestrator.summarize_text(SCENARIO_A_TEXT), Success)


@pytest.mark.asyncio
async def test_unexpected_validation_crash_settles_audio(orchestrator, gateway, wav_audio, monkeypatch):
    def explode(*args, **kwargs):
        raise RecursionError("too deep")

    monkeypatch.setattr("app.services.orchestrator.validate", explode)
    state = await orchestrator.summarize_audio(wav_audio)

    assert isinstance(state, Failed)
    assert isinstance(state.error, BackendError)
    assert isinstance(state.error.__cause__, RecursionError)
