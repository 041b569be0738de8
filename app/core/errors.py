from __future__ import annotations


class SummarizationError(Exception):
    """Base for every failure the summarization pipeline can surface."""

    user_message = "Something went wrong while summarizing the meeting."

    @property
    def kind(self) -> str:
        return type(self).__name__


class InvalidInputError(SummarizationError):
    """Blank transcript, empty file or non-audio upload. No network call is made."""

    user_message = "Please provide a transcript or an audio recording to summarize."


class ConfigurationError(SummarizationError):
    user_message = "The summarization service is not configured."


class BackendError(SummarizationError):
    user_message = "The summarization service failed. Please try again."


class InvalidResultError(SummarizationError):
    user_message = "The AI model produced an invalid result. Please try again."


class MalformedResponseError(InvalidResultError):
    """Backend output did not parse as JSON."""


class SchemaViolationError(InvalidResultError):
    """Backend output parsed but did not match the contracted shape."""


class RequestInFlightError(SummarizationError):
    user_message = "A summary is already being generated. Reset or wait for it to finish."
