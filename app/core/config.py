import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return (os.getenv(name) or default).strip().lower() in ("1", "true", "yes", "on")


OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL")
OPENAI_TEXT_MODEL = os.getenv("OPENAI_TEXT_MODEL") or "gpt-4o-mini"
OPENAI_AUDIO_MODEL = os.getenv("OPENAI_AUDIO_MODEL") or "gpt-4o-audio-preview"

SUMMARY_TEMPERATURE = float(os.getenv("SUMMARY_TEMPERATURE") or "0.2")
VALIDATION_STRICT = _flag("VALIDATION_STRICT", "true")

MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB") or "50")
MAX_TRANSCRIPT_CHARS = int(os.getenv("MAX_TRANSCRIPT_CHARS") or "5000")
SPEECH_CAPTURE_ENABLED = _flag("SPEECH_CAPTURE_ENABLED", "true")

LOG_LEVEL = os.getenv("LOG_LEVEL") or "INFO"
