"""
EasyTable Exceptions
====================
Typed errors carrying enough context for the route layer to map them
onto HTTP status codes.
"""

from typing import Any, Optional


class EasyTableError(Exception):
    """Base exception for all EasyTable core errors."""
    def __init__(self, message: str, service: str = "easytable", status_code: Optional[int] = None, details: Any = None):
        self.message = message
        self.service = service
        self.status_code = status_code
        self.details = details
        super().__init__(f"[{service}] {message} (Status: {status_code})")


class InvalidKindError(EasyTableError, ValueError):
    """Raised when an unknown auth request kind is requested."""
    def __init__(self, kind: Any):
        self.kind = kind
        super().__init__(f"Unknown request kind: {kind!r}", service="auth")


class InvalidRequestParamsError(EasyTableError, ValueError):
    """Raised when request params do not match the shape required for the kind."""
    def __init__(self, kind: str, details: Any = None):
        self.kind = kind
        super().__init__(f"Invalid params for request kind {kind!r}", service="auth", details=details)


class EncryptionFailedError(EasyTableError):
    """Raised when the AES-GCM primitive fails or is given a bad key or envelope."""
    def __init__(self, message: str = "Encryption failed"):
        super().__init__(message, service="crypto")


class AuthTransportError(EasyTableError):
    """Raised when the auth service cannot be reached or answers with a non-2xx status."""
    def __init__(self, message: str, status_code: Optional[int] = None, status_text: str = "", details: Any = None):
        self.status_text = status_text
        super().__init__(message, service="auth", status_code=status_code, details=details)


class UpstreamTransportError(EasyTableError):
    """Raised when the model API fails; ``details`` carries the upstream body."""
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.body = body
        super().__init__(message, service="llm", status_code=status_code, details=body)


class MalformedUpstreamLine(EasyTableError):
    """A single upstream line could not be parsed. Always recovered by the extractor."""
    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed upstream line: {reason}", service="llm")


class MissingImageError(EasyTableError):
    """Raised when an extraction is requested without an image."""
    def __init__(self):
        super().__init__("No image found in request", service="extract", status_code=400)


class QuotaDeniedError(EasyTableError):
    """Raised when the quota gate denies an extraction."""
    def __init__(self, decision: Any):
        self.decision = decision
        reason = decision.reason.value if decision.reason else "denied"
        super().__init__(f"Quota check denied: {reason}", service="auth", status_code=403)
