from typing import Optional

from .logging import logger


class ConfigurationError(Exception):
    """Raised when required gateway configuration is missing or invalid."""
    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.setting = setting

        logger.error(f"Configuration error: {message}", exc_info=False, setting=setting)


class UpstreamError(Exception):
    """The inference backend failed or answered with a non-success status."""
    def __init__(self, message: str, status_code: Optional[int] = None, error_code: str = "upstream_http_error",
                 original_exception: Optional[Exception] = None, response_text: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.original_exception = original_exception
        self.response_text = response_text

        logger.error(
            f"Upstream error: {message}",
            exc_info=original_exception is not None,
            error_code=error_code,
            upstream_status_code=status_code,
            original_exception_type=type(original_exception).__name__ if original_exception else None,
            response_preview=response_text[:200] + "..." if response_text and len(response_text) > 200 else response_text
        )


class UpstreamNetworkError(UpstreamError):
    """The inference backend could not be reached or the connection broke."""
    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(
            message,
            status_code=None,
            error_code="upstream_network_error",
            original_exception=original_exception
        )


class ChunkParseError(Exception):
    """A line of the backend's NDJSON stream is not a JSON object."""
    def __init__(self, message: str, line: str):
        super().__init__(message)
        self.message = message
        self.line = line
