"""Typed exception hierarchy. Every error postline can raise."""


class PostlineError(Exception):
    """Base exception for all postline errors."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


# ── Interpolation ───────────────────────────────────────────────────────────


class InterpolationError(PostlineError):
    """A template could not be interpolated."""
    pass


class CircularReference(InterpolationError):
    """A variable's value refers back to itself on the same expansion path."""
    def __init__(self, name: str, **kwargs):
        super().__init__(f"Circular reference detected for variable: {name}", **kwargs)
        self.name = name


class MaxDepthExceeded(InterpolationError):
    """Variable nesting went deeper than the interpolator allows."""
    def __init__(self, limit: int = 10, **kwargs):
        super().__init__(f"Maximum variable nesting depth exceeded (limit: {limit})", **kwargs)
        self.limit = limit


class InvalidVariable(InterpolationError):
    """Variable name rejected by strict validation."""
    def __init__(self, name: str, **kwargs):
        super().__init__(f"Invalid variable: {name}", **kwargs)
        self.name = name


# ── Request assembly ────────────────────────────────────────────────────────


class AssemblyError(PostlineError):
    """A request template could not be turned into a concrete request."""
    pass


class InvalidURL(AssemblyError):
    """Interpolated URL does not parse as an absolute http(s) URL."""
    def __init__(self, message: str, url: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.url = url


class BodyEncodingError(AssemblyError):
    """Body text cannot be encoded to the bytes sent on the wire."""
    pass


class HeaderEncodingError(AssemblyError):
    """Header name or value holds characters HTTP/1.1 headers cannot carry (non-ASCII)."""
    def __init__(self, message: str, header: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.header = header


class UnsupportedBodyError(AssemblyError):
    """Body variant is accepted by the model but not encoded by the assembler."""
    def __init__(self, message: str, body_type: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.body_type = body_type


# ── Transport ───────────────────────────────────────────────────────────────


class TransportError(PostlineError):
    """The network call failed before a complete response was received.

    ``kind`` is one of: timeout, connect, tls, protocol, too_large, network.
    """
    def __init__(self, message: str, kind: str = "network", **kwargs):
        super().__init__(message, **kwargs)
        self.kind = kind


# ── Secrets ─────────────────────────────────────────────────────────────────


class SecretError(PostlineError):
    """Secret storage, encryption, or decryption failed."""
    def __init__(self, message: str, secret_id: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.secret_id = secret_id


class SecretNotFound(SecretError):
    """No secret is stored under the given reference."""
    pass


# ── Persistence ─────────────────────────────────────────────────────────────


class HistoryError(PostlineError):
    """History store read or write failed."""
    pass


class WorkspaceFileError(PostlineError):
    """Workspace file is missing, unreadable, or fails validation."""
    def __init__(self, message: str, path: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.path = path
