"""Error taxonomy for the analysis flow."""

from typing import Optional


class AnalysisError(Exception):
    """Base class; ``code`` is a stable identifier used by the HTTP layer."""

    code = "analysis_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(AnalysisError):
    """The uploaded file is not an acceptable image (size, type or content)."""

    code = "validation_error"

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or reason)
        self.reason = reason


class ConfigurationError(AnalysisError):
    code = "configuration_error"


class NoImageError(AnalysisError):
    code = "no_image"


class NetworkError(AnalysisError):
    """Transport failure or non-success HTTP status from the model API."""

    code = "network_error"

    def __init__(self, status_code: Optional[int], reason: str = ""):
        if status_code is None:
            message = f"API request failed: {reason}"
        else:
            message = f"API request failed: {status_code} {reason}".rstrip()
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class MalformedResponseError(AnalysisError):
    """The API answered successfully but without any usable candidate text."""

    code = "malformed_response"
