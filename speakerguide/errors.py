"""
Error taxonomy for the guide-generation pipeline.

Every error carries the pipeline stage it belongs to, the HTTP status the
service boundary answers with, and a message that is safe to show a user
(no credentials, no raw upstream bodies).

    input       ExtractionError, EmptyDocumentError, UnsupportedFileError, FileTooLargeError
    validation  EmptyInputError, TooManySlidesError
    transport   AuthenticationMissing, RateLimited, QuotaExceeded, UpstreamUnavailable
    parsing     MalformedResponseError, SlideNumberMismatchError, SlideCountMismatchError
    session     GenerationInProgressError, GenerationCancelledError, AuthenticationRequired
"""
from __future__ import annotations

from typing import Optional


class SpeakerGuideError(Exception):
    stage = "unknown"
    http_status = 500
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# Input stage


class ExtractionError(SpeakerGuideError):
    stage = "input"
    http_status = 400


class EmptyDocumentError(ExtractionError):
    pass


class UnsupportedFileError(ExtractionError):
    def __init__(self, filename: str) -> None:
        super().__init__(f"Unsupported file type: {filename!r}. Please upload a PDF or PPTX file.")
        self.filename = filename


class FileTooLargeError(ExtractionError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"File too large ({size} bytes). Maximum size is {limit // (1024 * 1024)}MB.")
        self.size = size
        self.limit = limit


# Validation stage


class InputValidationError(SpeakerGuideError):
    stage = "validation"
    http_status = 400


class EmptyInputError(InputValidationError):
    pass


class TooManySlidesError(InputValidationError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f"Too many slides: {count} (maximum is {limit}).")
        self.count = count
        self.limit = limit


# Transport stage


class TransportError(SpeakerGuideError):
    stage = "transport"
    http_status = 502

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationMissing(TransportError):
    """Credentials for the generation backend are not configured."""

    http_status = 500

    def __init__(self, message: str = "Generation backend credentials are not configured.") -> None:
        super().__init__(message, status_code=None)


class RateLimited(TransportError):
    http_status = 429
    retryable = True

    def __init__(self, status_code: int = 429, retry_after: Optional[float] = None) -> None:
        super().__init__("Rate limit exceeded. Please try again in a moment.", status_code=status_code)
        self.retry_after = retry_after


class QuotaExceeded(TransportError):
    http_status = 402

    def __init__(self, status_code: int = 402) -> None:
        super().__init__("AI usage limit reached. Please add credits to continue.", status_code=status_code)


class UpstreamUnavailable(TransportError):
    retryable = True

    def __init__(self, status_code: Optional[int] = None, reason: str = "") -> None:
        if status_code is not None:
            message = f"Generation service error (status {status_code})."
        else:
            message = f"Generation service unreachable{': ' + reason if reason else ''}."
        super().__init__(message, status_code=status_code)


# Parsing stage


class ResponseParseError(SpeakerGuideError):
    stage = "parsing"
    http_status = 502


class MalformedResponseError(ResponseParseError):
    pass


class SlideNumberMismatchError(MalformedResponseError):
    def __init__(self, position: int, slide_number: int) -> None:
        super().__init__(
            f"Guide at position {position} is numbered {slide_number}; refusing to reorder guides."
        )
        self.position = position
        self.slide_number = slide_number


class SlideCountMismatchError(ResponseParseError):
    def __init__(self, expected: int, received: int) -> None:
        super().__init__(f"Expected guides for {expected} slides but received {received}.")
        self.expected = expected
        self.received = received


# Session


class GenerationInProgressError(SpeakerGuideError):
    stage = "session"
    http_status = 409

    def __init__(self) -> None:
        super().__init__("A guide is already being generated for this deck. Please wait for it to finish.")


class GenerationCancelledError(SpeakerGuideError):
    stage = "session"
    http_status = 409

    def __init__(self) -> None:
        super().__init__("Generation was cancelled before it finished.")


class AuthenticationRequired(SpeakerGuideError):
    """The caller did not present the service token."""

    stage = "session"
    http_status = 401

    def __init__(self) -> None:
        super().__init__("Authentication required.")
