"""
Custom exceptions for the training directives core.

Each exception carries:
- A descriptive message
- An error code
- Optional details for debugging

Only configuration defects and invalid input snapshots are ever raised to a
caller. Generation failures are resolved to fallback content inside the
orchestrator and never escape it.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes for consistent error reporting."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Input errors
    SNAPSHOT_INVALID = "SNAPSHOT_INVALID"

    # Content errors
    TEMPLATE_DEFINITION_ERROR = "TEMPLATE_DEFINITION_ERROR"

    # LLM errors
    LLM_SERVICE_UNAVAILABLE = "LLM_SERVICE_UNAVAILABLE"
    LLM_RATE_LIMITED = "LLM_RATE_LIMITED"
    LLM_RESPONSE_INVALID = "LLM_RESPONSE_INVALID"
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_API_ERROR = "LLM_API_ERROR"


class TrainingDirectivesError(Exception):
    """
    Base exception for all training directives errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Configuration and input errors
# ============================================================================

class ConfigurationError(TrainingDirectivesError):
    """Raised when a lookup table or setting is incomplete or inconsistent."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.CONFIGURATION_ERROR,
            details=details,
        )


class SnapshotValidationError(TrainingDirectivesError):
    """Raised when a biometric snapshot carries out-of-range values."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.SNAPSHOT_INVALID,
            details=error_details,
        )


class TemplateDefinitionError(ConfigurationError):
    """
    Raised when a fallback template fails its own validation.

    This is a fatal configuration defect. It is only discovered by the
    template self-check at startup, never on a request path.
    """

    def __init__(self, errors: list[str], schema: Optional[str] = None) -> None:
        details: Dict[str, Any] = {"errors": errors}
        if schema:
            details["schema"] = schema
        super().__init__(
            message=f"Fallback templates failed self-check with {len(errors)} error(s)",
            details=details,
        )
        self.code = ErrorCode.TEMPLATE_DEFINITION_ERROR
        self.errors = errors


# ============================================================================
# LLM errors
# ============================================================================

class LLMError(TrainingDirectivesError):
    """Base exception for LLM-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_API_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class LLMServiceUnavailableError(LLMError):
    """Raised when the LLM service is unavailable or not configured."""

    def __init__(
        self,
        message: str = "LLM service is currently unavailable",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.LLM_SERVICE_UNAVAILABLE,
            details=details,
        )


class LLMRateLimitError(LLMError):
    """Raised when the LLM rate limit is exceeded."""

    def __init__(
        self,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if retry_after:
            error_details["retry_after_seconds"] = retry_after
        super().__init__(
            message="LLM rate limit exceeded. Please try again later.",
            code=ErrorCode.LLM_RATE_LIMITED,
            details=error_details,
        )


class LLMTimeoutError(LLMError):
    """Raised when an LLM request times out."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if timeout_seconds:
            error_details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message="LLM request timed out",
            code=ErrorCode.LLM_TIMEOUT,
            details=error_details,
        )


class LLMResponseInvalidError(LLMError):
    """Raised when the LLM returns an empty or unusable response."""

    def __init__(
        self,
        message: str = "LLM returned an invalid response",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.LLM_RESPONSE_INVALID,
            details=details,
        )
