"""Exceptions raised by the ingestion and retrieval handlers."""


class ProxyError(Exception):
    """Base exception carrying the HTTP status and plain-text body to answer with."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def render(self) -> str:
        return self.message


class Unauthorized(ProxyError):
    """Missing or mismatched X-API-KEY credential."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class BadRequest(ProxyError):
    """Unsupported content type, malformed body or non-image upload part."""

    status_code = 400


class PayloadTooLarge(ProxyError):
    """Uploaded part exceeds the configured size limit."""

    status_code = 413

    def __init__(self, message: str = "File too large"):
        super().__init__(message)


class NotFound(ProxyError):
    """Requested object is absent from storage."""

    status_code = 404

    def __init__(self, message: str = "Object Not Found"):
        super().__init__(message)


class ProcessingFailure(ProxyError):
    """Runtime failure after validation passed; echoes the underlying message."""

    status_code = 500

    def render(self) -> str:
        return f"Error thrown {self.message}"


class UpstreamFetchFailure(ProcessingFailure):
    """A remote image URL could not be fetched."""

    status_code = 502


class StorageFailure(ProcessingFailure):
    """The object store failed to read or write."""

    status_code = 500
