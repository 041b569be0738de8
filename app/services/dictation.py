from __future__ import annotations

from app.core.config import MAX_TRANSCRIPT_CHARS


class TranscriptBuffer:
    """
    Accumulates finalized speech-recognition fragments into the transcript
    that is later handed to `summarize_text`. Interim results are dropped.
    """

    def __init__(self, max_chars: int = MAX_TRANSCRIPT_CHARS):
        self.max_chars = max_chars
        self._text = ""

    @property
    def text(self) -> str:
        return self._text

    def append(self, fragment: str, is_final: bool = True) -> str:
        if not is_final:
            return self._text

        fragment = (fragment or "").strip()
        if not fragment:
            return self._text

        joined = f"{self._text} {fragment}" if self._text.strip() else fragment
        self._text = joined[: self.max_chars]
        return self._text

    def replace(self, text: str) -> str:
        self._text = (text or "")[: self.max_chars]
        return self._text

    def clear(self) -> None:
        self._text = ""
