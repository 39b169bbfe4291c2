"""postline — local, file-backed API client core.

Usage:
    from postline import RequestTemplate, ScopeSet, RequestRunner

    runner = RequestRunner()
    outcome = await runner.send(template, ScopeSet.for_request(template, environment))
"""

from postline.types import (
    HTTPMethod, RawContentType, ApiKeyLocation, StatusFilter,
    SecretRef, Variable, Environment, Workspace, Collection, KeyValue,
    NoAuth, BearerAuth, BasicAuth, ApiKeyAuth, OAuthTokenAuth,
    NoBody, RawBody, FormUrlEncodedBody, MultipartBody, MultipartPart,
    RequestTemplate, ResolvedRequest, HTTPResponse, HistoryEntry,
)
from postline.exceptions import (
    PostlineError, InterpolationError, CircularReference, MaxDepthExceeded,
    InvalidVariable, AssemblyError, InvalidURL, BodyEncodingError, HeaderEncodingError,
    UnsupportedBodyError, TransportError, SecretError, SecretNotFound,
)
from postline.core import (
    Interpolator, interpolate, RequestAssembler, assemble, CurlExporter,
    export_curl, ScopeSet, merge, RequestRunner, SendOutcome,
)
from postline.version import __version__

__all__ = [
    "HTTPMethod", "RawContentType", "ApiKeyLocation", "StatusFilter",
    "SecretRef", "Variable", "Environment", "Workspace", "Collection", "KeyValue",
    "NoAuth", "BearerAuth", "BasicAuth", "ApiKeyAuth", "OAuthTokenAuth",
    "NoBody", "RawBody", "FormUrlEncodedBody", "MultipartBody", "MultipartPart",
    "RequestTemplate", "ResolvedRequest", "HTTPResponse", "HistoryEntry",
    "PostlineError", "InterpolationError", "CircularReference", "MaxDepthExceeded",
    "InvalidVariable", "AssemblyError", "InvalidURL", "BodyEncodingError", "HeaderEncodingError",
    "UnsupportedBodyError", "TransportError", "SecretError", "SecretNotFound",
    "Interpolator", "interpolate", "RequestAssembler", "assemble", "CurlExporter",
    "export_curl", "ScopeSet", "merge", "RequestRunner", "SendOutcome",
    "__version__",
]
