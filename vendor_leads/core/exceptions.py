from __future__ import annotations

from typing import Any, Dict, Optional


class BaseAPIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class LeadPayloadError(BaseAPIException):
    """Lead payload could not be parsed as structured data.

    Surfaces to the vendor as a 500.
    """
    def __init__(self, message: str = "Lead data is not valid JSON", **kwargs):
        super().__init__(message, status_code=500, **kwargs)


class QueueMessageError(BaseAPIException):
    """A queued lead message could not be parsed."""
    def __init__(self, message: str = "Queued lead message is malformed", **kwargs):
        super().__init__(message, status_code=500, **kwargs)


class ConfigurationError(BaseAPIException):
    """Service configuration is missing or invalid."""
    def __init__(self, message: str = "Configuration error", **kwargs):
        super().__init__(message, status_code=500, **kwargs)

