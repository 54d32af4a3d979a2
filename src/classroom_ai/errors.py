"""Error Taxonomy

Every failure the service reports to a caller derives from ``ServiceError``,
which carries a machine-readable ``kind`` and the HTTP-style ``status_code``
the API layer responds with. Pipeline failures derive from ``AnalysisError``.

Status classification:
  - 400: no input supplied
  - 401 / 404: lesson routes (missing teacher identity, unknown lesson)
  - 422: the document could not be read
  - 499: the caller went away mid-analysis
  - 500: provider, parsing and all other internal failures
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AnalysisError(ServiceError):
    """Unrecoverable failure of a PDF analysis run."""

    kind = "analysis_error"


class InputError(AnalysisError):
    kind = "input_error"
    status_code = 400


class EmptyDocumentError(AnalysisError):
    """Normalized text is too short to be worth analyzing."""

    kind = "empty_document"
    status_code = 422


class ExtractionError(AnalysisError):
    """The extraction/OCR collaborator could not read the document."""

    kind = "extraction_error"
    status_code = 422


class ParseError(AnalysisError):
    """No JSON object could be recovered from a model response."""

    kind = "parse_error"


class MalformedResponseError(AnalysisError):
    """A chunk's response stayed unparseable after all retries."""

    kind = "malformed_response"


class ProviderError(AnalysisError):
    """Transport, auth or rate-limit failure from the LLM provider."""

    kind = "provider_error"


class NoInsightsError(AnalysisError):
    kind = "no_insights"


class AnalysisCancelledError(AnalysisError):
    kind = "cancelled"
    status_code = 499


class UnauthorizedError(ServiceError):
    kind = "unauthorized"
    status_code = 401


class LessonNotFoundError(ServiceError):
    kind = "not_found"
    status_code = 404
