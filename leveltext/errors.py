"""Domain exceptions for pipeline phases, service calls, and CLI diagnostics.

Each error carries a machine-readable `code`, a user-facing message, and a
retryability flag. Phase-level failures are persisted on the job record using
these fields so callers can tell a transient failure from a permanent one.
"""

from __future__ import annotations


class JobError(RuntimeError):
    """Raised when a job phase fails with a caller-visible diagnosis."""

    code = "INTERNAL_ERROR"
    default_user_message = "Something went wrong. Please try again."
    default_retryable = True

    def __init__(
        self,
        detail: str,
        *,
        user_message: str | None = None,
        retryable: bool | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize a coded job error."""

        super().__init__(detail)
        self.detail = detail
        self.user_message = user_message or self.default_user_message
        self.retryable = self.default_retryable if retryable is None else retryable
        self.hint = hint


class FetchError(JobError):
    code = "FETCH_FAILED"
    default_user_message = (
        "Unable to fetch the article. The website may be blocking access or "
        "temporarily unavailable."
    )

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class FetchTimeoutError(FetchError):
    code = "FETCH_TIMEOUT"
    default_user_message = "The website took too long to respond. Please try again."


class ExtractionError(JobError):
    code = "EXTRACTION_FAILED"
    default_user_message = (
        "Could not extract readable content from this page. It may be behind a "
        "paywall or require login."
    )
    default_retryable = False

    def __init__(self, reason: str) -> None:
        super().__init__(f"Content extraction failed: {reason}")


class ContentTooShortError(JobError):
    code = "CONTENT_TOO_SHORT"
    default_user_message = (
        "The extracted content is too short. This page may not contain enough "
        "readable text."
    )
    default_retryable = False

    def __init__(self, length: int, min_length: int) -> None:
        super().__init__(f"Content too short: {length} chars (min: {min_length})")
        self.length = length
        self.min_length = min_length


class TranslationError(JobError):
    code = "TRANSLATION_FAILED"
    default_user_message = (
        "Translation service encountered an error. Your progress has been saved - "
        "you can retry."
    )

    def __init__(self, reason: str, chunk_index: int | None = None) -> None:
        if chunk_index is None:
            detail = f"Translation failed: {reason}"
        else:
            detail = f"Translation failed at chunk {chunk_index}: {reason}"
        super().__init__(detail)
        self.chunk_index = chunk_index


class PdfValidationError(JobError):
    code = "PDF_INVALID"
    default_retryable = False

    def __init__(self, reason: str) -> None:
        super().__init__(f"PDF validation failed: {reason}", user_message=reason)


class PdfExtractionError(JobError):
    code = "PDF_EXTRACTION_FAILED"
    default_user_message = (
        "Could not read this PDF. It may be scanned, corrupted, or password-protected."
    )
    default_retryable = False

    def __init__(self, reason: str) -> None:
        super().__init__(f"PDF extraction failed: {reason}")


class PdfUploadError(JobError):
    code = "PDF_UPLOAD_FAILED"
    default_user_message = "Failed to upload the PDF. Please try again."

    def __init__(self, reason: str) -> None:
        super().__init__(f"PDF upload failed: {reason}")


class RateLimitError(JobError):
    code = "RATE_LIMITED"
    default_user_message = "Service is temporarily busy. Please wait a moment and try again."

    def __init__(self, service: str) -> None:
        super().__init__(f"Rate limited by {service}")


class OperationTimeoutError(JobError):
    code = "TIMEOUT"
    default_user_message = "The operation took too long. Please try again."

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        super().__init__(f"{operation} timed out after {timeout_seconds:g}s")


class InternalError(JobError):
    """Fallback for failures without a more specific classification."""


class ConfigurationError(JobError):
    """Raised when CLI or file configuration cannot be resolved."""

    code = "CONFIG_INVALID"
    default_user_message = "Configuration is invalid."
    default_retryable = False


class JobNotFoundError(LookupError):
    """Raised when a job id does not resolve to a persisted job record."""

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


NON_RETRYABLE_CODES = frozenset(
    {
        ExtractionError.code,
        ContentTooShortError.code,
        PdfValidationError.code,
        PdfExtractionError.code,
    }
)


def is_retryable_code(code: str | None) -> bool:
    """Return whether a persisted error code allows resubmission to make progress."""

    return (code or "") not in NON_RETRYABLE_CODES


def to_job_error(exc: BaseException, fallback_message: str | None = None) -> JobError:
    """Convert an arbitrary exception into a `JobError`."""

    if isinstance(exc, JobError):
        return exc
    return InternalError(fallback_message or str(exc) or type(exc).__name__)
