"""Exception classes for the Analyze Image client."""

from typing import Optional


class AnalyzeImageError(Exception):
    """Base exception for Analyze Image client errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CredentialError(AnalyzeImageError):
    """Missing or invalid key or endpoint."""
    pass


class ValidationError(AnalyzeImageError):
    """Request options rejected locally, before any network call."""
    pass


class TransportError(AnalyzeImageError):
    """DNS, connect, read or timeout failure from the HTTP transport."""
    pass


class HTTPError(AnalyzeImageError):
    """Non-2xx response from the service."""

    def __init__(
        self,
        message: str,
        status_code: int,
        error=None,
        body: bytes = b"",
    ):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code
        # Decoded vendor error envelope, or None if the body was not one
        self.error = error
        self.body = body

    @property
    def code(self) -> Optional[str]:
        return self.error.error.code if self.error else None


class DecodeError(AnalyzeImageError):
    """Response body did not match the expected schema."""

    def __init__(self, message: str, path: str = "<root>"):
        super().__init__(message, {"path": path})
        self.path = path
