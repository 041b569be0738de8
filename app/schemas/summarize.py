from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Annotated, Optional, Literal, Tuple


Decision = Annotated[str, Field(description="A specific decision that was made during the meeting.")]
ActionItem = Annotated[str, Field(description="A clear, actionable task with the assigned person if mentioned.")]


class SummaryResult(BaseModel):
    """Wire contract and result value for a text summary."""

    model_config = ConfigDict(strict=True, frozen=True, extra="forbid", populate_by_name=True)

    summary: str = Field(
        description=(
            "A concise paragraph summarizing the key discussion points, "
            "decisions made, and overall outcomes of the meeting."
        ),
    )
    key_decisions: Tuple[Decision, ...] = Field(
        alias="keyDecisions",
        description=(
            "An array of strings, where each string is a key decision. "
            "If no decisions are found, this should be an empty array."
        ),
    )
    action_items: Tuple[ActionItem, ...] = Field(
        alias="actionItems",
        description=(
            "An array of strings, where each string is an action item. "
            "If no action items are found, this should be an empty array."
        ),
    )

    @field_validator("summary")
    @classmethod
    def _summary_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("summary must not be empty")
        return v


class TranscriptionAndSummaryReply(SummaryResult):
    """Flat wire contract for the audio request: the summary fields plus a transcript."""

    transcript: str = Field(description="The full, accurate transcription of the audio from the meeting.")

    def to_result(self) -> "TranscriptionAndSummaryResult":
        return TranscriptionAndSummaryResult(
            transcript=self.transcript,
            summary=SummaryResult(
                summary=self.summary,
                key_decisions=self.key_decisions,
                action_items=self.action_items,
            ),
        )


class TranscriptionAndSummaryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    transcript: str
    summary: SummaryResult


class SummarizeTextRequest(BaseModel):
    # None -> use the dictation buffer
    text: Optional[str] = None


class TranscriptFragment(BaseModel):
    text: str
    is_final: bool = True


class TranscriptBufferView(BaseModel):
    transcript: str
    max_chars: int


class StateView(BaseModel):
    status: Literal["idle", "loading", "success", "error"]
    summary: Optional[str] = None
    key_decisions: Tuple[str, ...] = ()
    action_items: Tuple[str, ...] = ()
    transcript: Optional[str] = None
    has_audio: bool = False
    audio_filename: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
