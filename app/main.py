from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, HTTPException, Request, Response, UploadFile, Form
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from app.core import config
from app.core.errors import InvalidInputError, RequestInFlightError
from app.core.logging import configure_logging, get_logger
from app.schemas.summarize import (
    StateView,
    SummarizeTextRequest,
    TranscriptBufferView,
    TranscriptFragment,
)
from app.services.dictation import TranscriptBuffer
from app.services.llm_client import gateway_from_env
from app.services.orchestrator import (
    Failed,
    Loading,
    OrchestrationState,
    SummarizationOrchestrator,
    Success,
)
from app.services.request_builder import AudioPayload

log = get_logger(__name__)


@dataclass
class Session:
    orchestrator: SummarizationOrchestrator
    buffer: TranscriptBuffer = field(default_factory=TranscriptBuffer)
    speech_capture_enabled: bool = config.SPEECH_CAPTURE_ENABLED


app = FastAPI(title="Meeting Summarizer", version="0.1.0")
app.state.session = None
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


@app.on_event("startup")
def _startup():
    configure_logging(config.LOG_LEVEL)
    if app.state.session is None:
        # ConfigurationError here aborts startup; no per-request credential checks.
        app.state.session = Session(orchestrator=SummarizationOrchestrator(gateway_from_env()))
    log.info(f"startup speech_capture={app.state.session.speech_capture_enabled}")


def get_session() -> Session:
    return app.state.session


def to_view(state: OrchestrationState) -> StateView:
    if isinstance(state, Success):
        return StateView(
            status="success",
            summary=state.result.summary,
            key_decisions=state.result.key_decisions,
            action_items=state.result.action_items,
            transcript=state.transcript,
            has_audio=state.audio is not None,
            audio_filename=state.audio.filename if state.audio else None,
        )
    if isinstance(state, Failed):
        return StateView(status="error", error=state.message, error_kind=state.error.kind)
    if isinstance(state, Loading):
        return StateView(status="loading")
    return StateView(status="idle")


def _max_upload_bytes() -> int:
    return config.MAX_UPLOAD_MB * 1024 * 1024


async def _read_audio(file: UploadFile) -> AudioPayload:
    data = await file.read()
    if len(data) > _max_upload_bytes():
        raise HTTPException(status_code=413, detail=f"File too large (max {config.MAX_UPLOAD_MB}MB)")
    return AudioPayload(data=data, mime_type=file.content_type or "", filename=file.filename)


@app.get("/health")
def health():
    return {"status": "ok"}


# -------------------------
# API Layer (JSON endpoints)
# -------------------------
@app.get("/v1/state", response_model=StateView)
def read_state():
    return to_view(get_session().orchestrator.state)


@app.post("/v1/summarize/text", response_model=StateView)
async def summarize_text(req: SummarizeTextRequest):
    session = get_session()
    text = req.text if req.text is not None else session.buffer.text

    if len(text) > config.MAX_TRANSCRIPT_CHARS:
        raise HTTPException(status_code=400, detail=f"Transcript too long (max {config.MAX_TRANSCRIPT_CHARS} chars)")

    try:
        state = await session.orchestrator.summarize_text(text)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RequestInFlightError as e:
        raise HTTPException(status_code=409, detail=e.user_message)
    return to_view(state)


@app.post("/v1/summarize/audio", response_model=StateView)
async def summarize_audio(file: UploadFile = File(...)):
    session = get_session()
    audio = await _read_audio(file)

    try:
        state = await session.orchestrator.summarize_audio(audio)
    except RequestInFlightError as e:
        raise HTTPException(status_code=409, detail=e.user_message)
    return to_view(state)


@app.post("/v1/reset", response_model=StateView)
def reset():
    session = get_session()
    session.buffer.clear()
    return to_view(session.orchestrator.reset())


@app.post("/v1/transcript/fragments", response_model=TranscriptBufferView)
def append_fragment(fragment: TranscriptFragment):
    buffer = get_session().buffer
    buffer.append(fragment.text, is_final=fragment.is_final)
    return TranscriptBufferView(transcript=buffer.text, max_chars=buffer.max_chars)


@app.delete("/v1/transcript", response_model=TranscriptBufferView)
def clear_transcript():
    buffer = get_session().buffer
    buffer.clear()
    return TranscriptBufferView(transcript=buffer.text, max_chars=buffer.max_chars)


@app.get("/v1/state/audio")
def state_audio():
    state = get_session().orchestrator.state
    if not isinstance(state, Success) or state.audio is None:
        raise HTTPException(status_code=404, detail="No audio recording for the current result")
    return Response(content=state.audio.data, media_type=state.audio.mime_type)


# -------------------------
# UI Layer (HTML frontend)
# -------------------------
def _render(request: Request, text: str = "", notice: Optional[str] = None):
    session = get_session()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "text": text or session.buffer.text,
            "notice": notice,
            "view": to_view(session.orchestrator.state),
            "max_chars": config.MAX_TRANSCRIPT_CHARS,
            "speech_capture_enabled": session.speech_capture_enabled,
        },
    )


@app.get("/")
def ui_home(request: Request):
    return _render(request)


@app.post("/ui/text")
async def ui_text(request: Request, text: str = Form("")):
    session = get_session()
    if len(text) > config.MAX_TRANSCRIPT_CHARS:
        return _render(request, text=text, notice=f"Transcript too long (max {config.MAX_TRANSCRIPT_CHARS} chars)")

    session.buffer.replace(text)
    try:
        await session.orchestrator.summarize_text(session.buffer.text)
    except (InvalidInputError, RequestInFlightError) as e:
        return _render(request, text=text, notice=str(e))
    return _render(request, text=text)


@app.post("/ui/audio")
async def ui_audio(request: Request, file: UploadFile = File(...)):
    session = get_session()
    audio = await _read_audio(file)
    try:
        await session.orchestrator.summarize_audio(audio)
    except RequestInFlightError as e:
        return _render(request, notice=e.user_message)
    return _render(request)


@app.post("/ui/reset")
def ui_reset():
    session = get_session()
    session.buffer.clear()
    session.orchestrator.reset()
    return RedirectResponse(url="/", status_code=303)
