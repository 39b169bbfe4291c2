"""All shared types, enums, and type aliases. Everything imports from here."""

import json
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# ── Enums ──────────────────────────────────────────────────────────────

class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

class RawContentType(str, Enum):
    JSON = "application/json"
    TEXT = "text/plain"
    XML = "application/xml"
    HTML = "text/html"

class ApiKeyLocation(str, Enum):
    HEADER = "header"
    QUERY = "query"

class StatusFilter(str, Enum):
    SUCCESS = "2xx"
    REDIRECT = "3xx"
    CLIENT_ERROR = "4xx"
    SERVER_ERROR = "5xx"

    def bounds(self) -> tuple[int, int]:
        """Half-open status code range, e.g. (400, 500) for 4xx."""
        low = int(self.value[0]) * 100
        return low, low + 100

    def matches(self, status_code: Optional[int]) -> bool:
        if status_code is None:
            return False
        low, high = self.bounds()
        return low <= status_code < high


# ── Variables & scopes ─────────────────────────────────────────────────

class SecretRef(BaseModel):
    """Opaque handle to a value held in the secret store. Never the value itself."""

    model_config = {"frozen": True}

    secret_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    service: str = "postline.secrets"

class Variable(BaseModel):
    model_config = {"frozen": True}

    key: str
    value: str = ""
    enabled: bool = True
    is_secret: bool = False
    secret_ref: Optional[SecretRef] = None

class Environment(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    variables: list[Variable] = Field(default_factory=list)
    is_active: bool = False

class WorkspaceSettings(BaseModel):
    default_environment_id: Optional[str] = None
    timeout_ms: int = 30000
    follow_redirects: bool = True
    validate_ssl: bool = True

class Workspace(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: Optional[str] = None
    variables: list[Variable] = Field(default_factory=list)
    settings: WorkspaceSettings = Field(default_factory=WorkspaceSettings)

class Collection(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: Optional[str] = None
    variables: list[Variable] = Field(default_factory=list)


# ── Request template ───────────────────────────────────────────────────

class KeyValue(BaseModel):
    """One row of a header, query-param, or form-field table."""

    model_config = {"frozen": True}

    key: str = ""
    value: str = ""
    enabled: bool = True

Header = KeyValue
QueryParam = KeyValue
FormField = KeyValue


class NoAuth(BaseModel):
    model_config = {"frozen": True}

    type: Literal["none"] = "none"

class BearerAuth(BaseModel):
    model_config = {"frozen": True}

    type: Literal["bearer"] = "bearer"
    token: str = ""

class BasicAuth(BaseModel):
    model_config = {"frozen": True}

    type: Literal["basic"] = "basic"
    username: str = ""
    password: str = ""

class ApiKeyAuth(BaseModel):
    model_config = {"frozen": True}

    type: Literal["api_key"] = "api_key"
    key: str = ""
    value: str = ""
    location: ApiKeyLocation = ApiKeyLocation.HEADER

class OAuthTokenAuth(BaseModel):
    """Manually pasted OAuth access token; sent the same way as a bearer token."""

    model_config = {"frozen": True}

    type: Literal["oauth_token"] = "oauth_token"
    token: str = ""

AuthConfig = Annotated[
    Union[NoAuth, BearerAuth, BasicAuth, ApiKeyAuth, OAuthTokenAuth],
    Field(discriminator="type"),
]


class MultipartText(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["text"] = "text"
    value: str = ""

class MultipartFile(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["file"] = "file"
    path: str
    mime_type: Optional[str] = None

class MultipartPart(BaseModel):
    model_config = {"frozen": True}

    key: str = ""
    enabled: bool = True
    content: Annotated[Union[MultipartText, MultipartFile], Field(discriminator="kind")] = Field(
        default_factory=MultipartText
    )

class NoBody(BaseModel):
    model_config = {"frozen": True}

    type: Literal["none"] = "none"

class RawBody(BaseModel):
    model_config = {"frozen": True}

    type: Literal["raw"] = "raw"
    content: str = ""
    content_type: RawContentType = RawContentType.JSON

class FormUrlEncodedBody(BaseModel):
    model_config = {"frozen": True}

    type: Literal["form_urlencoded"] = "form_urlencoded"
    fields: list[FormField] = Field(default_factory=list)

class MultipartBody(BaseModel):
    model_config = {"frozen": True}

    type: Literal["multipart"] = "multipart"
    parts: list[MultipartPart] = Field(default_factory=list)

RequestBody = Annotated[
    Union[NoBody, RawBody, FormUrlEncodedBody, MultipartBody],
    Field(discriminator="type"),
]


class RequestTemplate(BaseModel):
    """A not-yet-resolved request. Any string field may hold {{placeholders}}.

    Frozen, down to its rows, auth and body; derive variants with ``model_copy``.
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Untitled request"
    method: HTTPMethod = HTTPMethod.GET
    url: str = ""
    headers: list[Header] = Field(default_factory=list)
    query_params: list[QueryParam] = Field(default_factory=list)
    auth: AuthConfig = Field(default_factory=NoAuth)
    body: RequestBody = Field(default_factory=NoBody)
    variables: list[Variable] = Field(default_factory=list)  # request-level overrides
    collection_id: Optional[str] = None


# ── Assembly output & transport ────────────────────────────────────────

class ResolvedRequest(BaseModel):
    """Fully concrete request. The only shape the transport accepts."""
    method: HTTPMethod
    url: str
    headers: list[tuple[str, str]] = Field(default_factory=list)
    body: Optional[bytes] = None
    content_type: Optional[str] = None

    def wire_headers(self) -> list[tuple[str, str]]:
        """Headers as sent: the body content type replaces any user Content-Type."""
        if self.content_type is None:
            return list(self.headers)
        kept = [(k, v) for k, v in self.headers if k.lower() != "content-type"]
        kept.append(("Content-Type", self.content_type))
        return kept

class HTTPResponse(BaseModel):
    status_code: int
    reason: str = ""
    headers: list[tuple[str, str]] = Field(default_factory=list)
    body: bytes = b""
    duration_ms: int = 0
    size: int = 0
    url: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def pretty_body(self) -> str:
        """Indented JSON with sorted keys when the body is JSON, plain text otherwise."""
        try:
            return json.dumps(json.loads(self.body), indent=2, sort_keys=True, ensure_ascii=False)
        except (json.JSONDecodeError, ValueError):
            return self.text

    @property
    def formatted_duration(self) -> str:
        if self.duration_ms < 1000:
            return f"{self.duration_ms} ms"
        return f"{self.duration_ms / 1000:.2f} s"

    @property
    def formatted_size(self) -> str:
        if self.size < 1000:
            return f"{self.size} bytes"
        if self.size < 1_000_000:
            return f"{self.size / 1000:.1f} KB"
        return f"{self.size / 1_000_000:.1f} MB"


# ── History ────────────────────────────────────────────────────────────

class HistoryEntry(BaseModel):
    """One recorded send. ``status_code`` is None when the send failed."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    request_id: str
    request_name: str
    method: str
    url: str
    workspace_id: str
    status_code: Optional[int] = None
    duration_ms: int = 0
    response_size: int = 0
    timestamp: datetime = Field(default_factory=utcnow)

class DateRange(BaseModel):
    start: datetime
    end: datetime

    @classmethod
    def last_days(cls, days: int) -> "DateRange":
        now = utcnow()
        return cls(start=now - timedelta(days=days), end=now)
