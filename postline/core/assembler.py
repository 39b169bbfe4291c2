"""Request assembly: RequestTemplate + merged variables → ResolvedRequest.

Steps run in a fixed order because the final URL shape depends on it:
URL → query params → headers → auth → body. Any interpolation failure
aborts the whole pass; there is no partially assembled request.

Query strings are always appended as ``?k=v&...``, even when the
interpolated URL already carries a ``?``. Existing requests depend on that
shape, so it is kept as is rather than merged with ``&``.
"""

import base64
import logging
from typing import Callable, Iterable, Mapping, Optional
from urllib.parse import quote

import httpx

from postline.core.interpolator import Interpolator
from postline.exceptions import (
    AssemblyError, BodyEncodingError, HeaderEncodingError, InvalidURL, UnsupportedBodyError,
)
from postline.types import (
    ApiKeyAuth, ApiKeyLocation, BasicAuth, BearerAuth, FormUrlEncodedBody, KeyValue,
    MultipartBody, NoAuth, NoBody, OAuthTokenAuth, RawBody, RequestTemplate, ResolvedRequest,
)

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Sub-delims and pchar characters left readable in query components.
# & = + # ? are always escaped so keys and values cannot break the pairing.
_QUERY_SAFE = "!$'()*,/:;@"

Resolve = Callable[[str], str]


# ── Shared helpers (also used by the cURL exporter) ────────────────────

def active_entries(entries: Iterable[KeyValue]) -> list[KeyValue]:
    """Enabled rows with a non-empty key, in template order."""
    return [e for e in entries if e.enabled and e.key]


def resolve_pairs(entries: Iterable[KeyValue], resolve: Resolve) -> list[tuple[str, str]]:
    """Interpolate key and value of every active row."""
    return [(resolve(e.key), resolve(e.value)) for e in active_entries(entries)]


def encode_component(text: str) -> str:
    """Percent-encode *text* (as UTF-8) for use as a query/form key or value."""
    try:
        return quote(text, safe=_QUERY_SAFE, encoding="utf-8", errors="strict")
    except UnicodeEncodeError as exc:
        raise AssemblyError(f"Cannot percent-encode {text!r}: {exc.reason}") from exc


def encode_pairs(pairs: Iterable[tuple[str, str]]) -> str:
    return "&".join(f"{encode_component(k)}={encode_component(v)}" for k, v in pairs)


def append_query(url: str, query: str) -> str:
    """Append ``?query``. An existing ``?`` in *url* is not merged with."""
    if not query:
        return url
    return f"{url}?{query}"


def redact_url(url: str) -> str:
    """Drop query and fragment; query strings may carry API keys."""
    return url.split("#", 1)[0].split("?", 1)[0]


def validate_url(url: str) -> str:
    """Reject anything that is not an absolute http(s) URL with a host.

    Error messages show the URL without its query string.
    """
    shown = redact_url(url)
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidURL(f"Invalid URL '{shown}': {exc}", url=url) from exc
    if parsed.scheme not in ("http", "https"):
        raise InvalidURL(f"Invalid URL '{shown}': scheme must be http or https", url=url)
    if not parsed.host:
        raise InvalidURL(f"Invalid URL '{shown}': missing host", url=url)
    return url


def basic_credentials(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def check_headers(headers: Iterable[tuple[str, str]]) -> None:
    """Reject header names or values the transport cannot encode.

    Only the header name goes into the error; values may be credentials.
    """
    for name, value in headers:
        for part, text in (("name", name), ("value", value)):
            try:
                text.encode("ascii")
            except UnicodeEncodeError as exc:
                shown = name if part == "value" else name.encode("ascii", "replace").decode()
                raise HeaderEncodingError(
                    f"Header '{shown}' has a non-ASCII {part} at position {exc.start}",
                    header=name,
                    details={"part": part, "start": exc.start},
                ) from exc


# ── Assembler ──────────────────────────────────────────────────────────

class RequestAssembler:
    """Builds transport-ready requests from templates. Stateless; reuse freely."""

    def __init__(self, interpolator: Optional[Interpolator] = None) -> None:
        self.interpolator = interpolator or Interpolator()

    def assemble(self, template: RequestTemplate, variables: Mapping[str, str]) -> ResolvedRequest:
        """Resolve every templated field of *template* against *variables*.

        Raises:
            InterpolationError: circular reference or nesting too deep in any field.
            InvalidURL: final URL is not an absolute http(s) URL.
            BodyEncodingError: body text cannot be encoded as UTF-8.
            HeaderEncodingError: a header name or value is not ASCII.
            UnsupportedBodyError: multipart bodies are not encoded.
        """
        def resolve(text: str) -> str:
            return self.interpolator.interpolate(text, variables)

        url = resolve(template.url)
        query_pairs = resolve_pairs(template.query_params, resolve)
        headers = resolve_pairs(template.headers, resolve)

        auth_headers, auth_query = self._resolve_auth(template, resolve)
        headers.extend(auth_headers)
        query_pairs.extend(auth_query)
        check_headers(headers)

        final_url = validate_url(append_query(url, encode_pairs(query_pairs)))
        body, content_type = self._resolve_body(template, resolve)

        logger.debug(
            "Assembled %s request %s (%d headers, body=%s)",
            template.method.value, template.id, len(headers),
            "none" if body is None else f"{len(body)} bytes",
        )
        return ResolvedRequest(
            method=template.method,
            url=final_url,
            headers=headers,
            body=body,
            content_type=content_type,
        )

    def _resolve_auth(
        self, template: RequestTemplate, resolve: Resolve,
    ) -> tuple[list[tuple[str, str]], list[tuple[str, str]]]:
        """Return (extra headers, extra query pairs) for the template's auth."""
        auth = template.auth
        if isinstance(auth, NoAuth):
            return [], []
        if isinstance(auth, (BearerAuth, OAuthTokenAuth)):
            token = resolve(auth.token)
            # An empty token would only produce a malformed header.
            if not token:
                return [], []
            return [("Authorization", f"Bearer {token}")], []
        if isinstance(auth, BasicAuth):
            return [("Authorization", basic_credentials(resolve(auth.username), resolve(auth.password)))], []
        if isinstance(auth, ApiKeyAuth):
            name = resolve(auth.key)
            value = resolve(auth.value)
            if not name:
                return [], []
            if auth.location == ApiKeyLocation.HEADER:
                return [(name, value)], []
            return [], [(name, value)]
        raise AssemblyError(f"Unknown auth type: {type(auth).__name__}")

    def _resolve_body(
        self, template: RequestTemplate, resolve: Resolve,
    ) -> tuple[Optional[bytes], Optional[str]]:
        """Return (body bytes, content type) for the template's body."""
        body = template.body
        if isinstance(body, NoBody):
            return None, None
        if isinstance(body, RawBody):
            content = resolve(body.content)
            try:
                encoded = content.encode("utf-8")
            except UnicodeEncodeError as exc:
                raise BodyEncodingError(
                    f"Body is not valid UTF-8 text at position {exc.start}: {exc.reason}",
                    details={"start": exc.start, "end": exc.end},
                ) from exc
            return encoded, body.content_type.value
        if isinstance(body, FormUrlEncodedBody):
            form = encode_pairs(resolve_pairs(body.fields, resolve))
            return form.encode("ascii"), FORM_CONTENT_TYPE
        if isinstance(body, MultipartBody):
            active = [p for p in body.parts if p.enabled and p.key]
            raise UnsupportedBodyError(
                f"Multipart bodies are not encoded yet ({len(active)} active part(s)); "
                "switch the body to raw or form-urlencoded",
                body_type="multipart",
                details={"parts": [p.key for p in active]},
            )
        raise AssemblyError(f"Unknown body type: {type(body).__name__}")


_default = RequestAssembler()


def assemble(template: RequestTemplate, variables: Mapping[str, str]) -> ResolvedRequest:
    return _default.assemble(template, variables)
