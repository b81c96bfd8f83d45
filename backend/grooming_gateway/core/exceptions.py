"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No sensitive data leaks in error messages

Every error the import pipeline reports to a caller is one of these classes;
the handlers in exception_handlers.py turn them into JSON responses.
"""

from typing import Any, Dict, List, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class ensures consistent
    error responses and HTTP status code mapping.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


class MissingFileError(ValidationError):
    """Raised when an upload request carries no file."""

    default_message = "No file provided"


class EmptyUploadError(ValidationError):
    """Raised when a file is uploaded but has no content."""

    default_message = "Uploaded file is empty"


class SpreadsheetParseError(ValidationError):
    """
    Raised when an uploaded file cannot be read as a workbook.

    WHY: Corrupt or non-xlsx uploads are a client problem, not a server
    fault, so they surface as 400 rather than falling through to 500.
    """

    default_message = "Unable to read spreadsheet file"


class EmptySpreadsheetError(ValidationError):
    """Raised when a workbook holds a header row but no data rows."""

    default_message = "Excel file is empty or contains no data rows"


class MissingColumnsError(ValidationError):
    """
    Raised when required columns are absent from the header row.

    The missing names are kept on the instance and echoed in details so the
    caller can fix the template in one pass.
    """

    default_message = "Missing required columns"

    def __init__(self, missing_columns: List[str], message: Optional[str] = None, **context: Any):
        self.missing_columns = list(missing_columns)
        super().__init__(
            message=message or f"Missing required columns: {', '.join(self.missing_columns)}",
            missing_columns=self.missing_columns,
            **context,
        )


class RowValidationError(ValidationError):
    """
    Raised when one or more spreadsheet rows fail field validation.

    WHY: Row errors are aggregated across the whole batch before raising,
    so the response lists every problem at once. The list is exposed as a
    top-level "errors" array which UI clients render directly.

    HTTP Status: 400 Bad Request
    """

    default_message = "Validation errors found in Excel file:"

    def __init__(self, errors: List[str], message: Optional[str] = None, **context: Any):
        self.errors = list(errors)
        super().__init__(message=message, error_count=len(self.errors), **context)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["errors"] = self.errors
        return result


# ============================================================================
# External Service Exceptions
# ============================================================================


class ExternalServiceError(AppException):
    """
    Base exception for external service failures.

    WHY: External API failures should return 502 Bad Gateway, indicating
    the problem is with an upstream service, not our application.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    default_message = "External service error"


class BackendAPIError(ExternalServiceError):
    """
    Raised when the grooming backend answers with an error status.

    WHY: The downstream status code is passed through unchanged (callers
    construct this with status_code=response.status_code) so the UI sees
    the same 4xx/5xx the backend produced.
    """

    default_message = "Grooming backend request failed"


class BackendUnavailableError(ExternalServiceError):
    """Raised when the grooming backend cannot be reached at all."""

    default_message = "Grooming backend is unavailable"


class DownstreamImportError(ExternalServiceError):
    """
    Raised when the downstream import endpoint rejects or fails a batch.

    HTTP Status: the downstream status when one was received, 502 otherwise
    """

    default_message = "Failed to import travel times"


class StreamRelayError(ExternalServiceError):
    """
    Raised when the downstream progress stream breaks mid-relay.

    WHY: By the time this happens the response headers are already sent,
    so it cannot become a JSON error. Raising it out of the body iterator
    aborts the outbound stream instead.
    """

    default_message = "Import progress stream interrupted"
