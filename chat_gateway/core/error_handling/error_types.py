"""
Error Types and Context Definitions

Standardized error types and context information for consistent error
responses across the gateway.
"""

from enum import Enum
from typing import Dict, Any, Optional
from fastapi import status


class ErrorType(Enum):
    """Enumeration of standard error types in the system."""

    # Validation Errors (422)
    VALIDATION_ERROR = ("validation_error", 422, "Invalid request: {error_details}")

    # Upstream Errors (502/503)
    UPSTREAM_HTTP_ERROR = ("upstream_http_error", status.HTTP_502_BAD_GATEWAY, "Inference backend error: {error_details}")
    UPSTREAM_NETWORK_ERROR = ("upstream_network_error", status.HTTP_503_SERVICE_UNAVAILABLE, "Could not reach inference backend: {error_details}")

    # Server Errors (500)
    INTERNAL_SERVER_ERROR = ("internal_server_error", status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error: {error_details}")

    def __init__(self, code: str, status_code: int, message_template: str):
        self.code = code
        self.status_code = status_code
        self.message_template = message_template

    def format_message(self, **kwargs) -> str:
        """Format the error message with provided parameters."""
        try:
            return self.message_template.format(**kwargs)
        except KeyError:
            return self.message_template

    def create_error_detail(self, **kwargs) -> Dict[str, Any]:
        """Create standardized error detail dictionary."""
        return {
            "error": {
                "message": self.format_message(**kwargs),
                "code": self.code
            }
        }


class ErrorContext:
    """Context information for error handling."""

    def __init__(
        self,
        request_id: Optional[str] = None,
        model_id: Optional[str] = None,
        session_id: Optional[str] = None,
        endpoint_path: Optional[str] = None,
        **additional_context
    ):
        self.request_id = request_id
        self.model_id = model_id
        self.session_id = session_id
        self.endpoint_path = endpoint_path
        self.additional_context = additional_context

    def to_log_extra(self) -> Dict[str, Any]:
        """Convert context to logging extra dictionary."""
        extra = {
            "log_type": "error"
        }

        if self.request_id:
            extra["request_id"] = self.request_id
        if self.model_id:
            extra["model_id"] = self.model_id
        if self.session_id:
            extra["session_id"] = self.session_id
        if self.endpoint_path:
            extra["endpoint_path"] = self.endpoint_path

        extra.update(self.additional_context)
        return extra
