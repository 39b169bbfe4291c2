"""Render a RequestTemplate as a copy-pasteable cURL command.

Uses the assembler's helpers so the command matches what ``send`` would put
on the wire: same scope precedence, same query shape, same filtering of
disabled and empty-key rows. Auth credentials are always redacted, and
callers pass a variable map built without secrets, so secret-backed
placeholders stay as ``{{name}}``.
"""

import logging
import shlex
from typing import Mapping, Optional

from postline.core.assembler import active_entries, append_query, encode_pairs
from postline.core.interpolator import Interpolator
from postline.exceptions import InterpolationError
from postline.types import (
    ApiKeyAuth, ApiKeyLocation, BasicAuth, BearerAuth, FormUrlEncodedBody, HTTPMethod,
    MultipartBody, MultipartFile, NoAuth, NoBody, OAuthTokenAuth, RawBody, RequestTemplate,
)

logger = logging.getLogger(__name__)

TOKEN_PLACEHOLDER = "<token>"
PASSWORD_PLACEHOLDER = "<password>"
API_KEY_PLACEHOLDER = "<api-key>"

_LINE_JOIN = " \\\n  "


class CurlExporter:
    """Projects templates onto shell commands. Never resolves secrets."""

    def __init__(self, interpolator: Optional[Interpolator] = None) -> None:
        self.interpolator = interpolator or Interpolator()

    def export(
        self,
        template: RequestTemplate,
        variables: Optional[Mapping[str, str]] = None,
        multiline: bool = True,
    ) -> str:
        variables = variables or {}

        def resolve(text: str) -> str:
            # Display path: a broken field is shown as written rather than failing.
            try:
                return self.interpolator.interpolate(text, variables)
            except InterpolationError as exc:
                logger.debug("cURL export left %r unresolved: %s", text, exc)
                return text

        parts: list[str] = ["curl"]
        if template.method != HTTPMethod.GET:
            parts += ["-X", template.method.value]

        url = resolve(template.url)
        query_pairs = [(resolve(p.key), resolve(p.value)) for p in active_entries(template.query_params)]
        header_args: list[str] = []
        for header in active_entries(template.headers):
            header_args += ["-H", f"{resolve(header.key)}: {resolve(header.value)}"]

        auth = template.auth
        redacted_query = ""
        if isinstance(auth, NoAuth):
            pass
        elif isinstance(auth, (BearerAuth, OAuthTokenAuth)):
            header_args += ["-H", f"Authorization: Bearer {TOKEN_PLACEHOLDER}"]
        elif isinstance(auth, BasicAuth):
            header_args += ["-u", f"{resolve(auth.username)}:{PASSWORD_PLACEHOLDER}"]
        elif isinstance(auth, ApiKeyAuth):
            name = resolve(auth.key)
            if name and auth.location == ApiKeyLocation.HEADER:
                header_args += ["-H", f"{name}: {API_KEY_PLACEHOLDER}"]
            elif name:
                # Redacted value goes in unencoded so the marker stays readable.
                redacted_query = f"{encode_pairs([(name, '')])}{API_KEY_PLACEHOLDER}"
        else:
            raise TypeError(f"Unknown auth type: {type(auth).__name__}")

        query = encode_pairs(query_pairs)
        if redacted_query:
            query = f"{query}&{redacted_query}" if query else redacted_query
        parts.append(append_query(url, query))
        parts += header_args
        parts += self._body_args(template, resolve)

        tokens = [parts[0]] + [shlex.quote(p) for p in parts[1:]]
        if not multiline:
            return " ".join(tokens)
        return _LINE_JOIN.join(_pair_flags(tokens))

    def _body_args(self, template: RequestTemplate, resolve) -> list[str]:
        body = template.body
        if isinstance(body, NoBody):
            return []
        if isinstance(body, RawBody):
            return [
                "-H", f"Content-Type: {body.content_type.value}",
                "--data-raw", resolve(body.content),
            ]
        if isinstance(body, FormUrlEncodedBody):
            args: list[str] = []
            for field in active_entries(body.fields):
                args += ["--data-urlencode", f"{resolve(field.key)}={resolve(field.value)}"]
            return args
        if isinstance(body, MultipartBody):
            args = []
            for part in body.parts:
                if not part.enabled or not part.key:
                    continue
                if isinstance(part.content, MultipartFile):
                    args += ["-F", f"{resolve(part.key)}=@{part.content.path}"]
                else:
                    args += ["-F", f"{resolve(part.key)}={resolve(part.content.value)}"]
            return args
        raise TypeError(f"Unknown body type: {type(body).__name__}")


def _pair_flags(tokens: list[str]) -> list[str]:
    """Keep each flag on the same line as its argument."""
    lines: list[str] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.startswith("-") and i + 1 < len(tokens):
            lines.append(f"{token} {tokens[i + 1]}")
            i += 2
        else:
            lines.append(token)
            i += 1
    return lines


_default = CurlExporter()


def export_curl(
    template: RequestTemplate,
    variables: Optional[Mapping[str, str]] = None,
    multiline: bool = True,
) -> str:
    return _default.export(template, variables, multiline)
