"""RequestRunner — the call boundary between templates and the network.

Flow for one send:
    scopes → merged variables → RequestAssembler → TransportExecutor → HistoryRecorder

Assembly and transport failures are expected (templates are user-authored,
networks are unreliable). They are caught here and returned as a typed
``SendOutcome.error`` instead of escaping to the caller. History and
callbacks run after the outcome is known and cannot change it.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel

from postline.callbacks.base import RunnerCallback
from postline.core.assembler import RequestAssembler, redact_url
from postline.core.curl import CurlExporter
from postline.core.interpolator import Interpolator
from postline.core.scopes import ScopeSet, SecretResolver
from postline.exceptions import InterpolationError, PostlineError, TransportError
from postline.types import (
    ApiKeyAuth, BasicAuth, BearerAuth, FormUrlEncodedBody, HTTPResponse, MultipartBody,
    MultipartText, OAuthTokenAuth, RawBody, RequestTemplate, ResolvedRequest,
)

logger = logging.getLogger(__name__)


class SendOutcome(BaseModel):
    """Result of one send. Exactly one of ``response`` / ``error`` is set."""
    resolved: Optional[ResolvedRequest] = None
    response: Optional[HTTPResponse] = None
    error: Optional[PostlineError] = None

    model_config = {"arbitrary_types_allowed": True}

    @property
    def ok(self) -> bool:
        return self.error is None and self.response is not None

    @property
    def error_type(self) -> Optional[str]:
        return type(self.error).__name__ if self.error is not None else None


def template_fields(template: RequestTemplate) -> list[str]:
    """Every templated string that assembly would interpolate."""
    fields = [template.url]
    for row in template.query_params + template.headers:
        if row.enabled:
            fields += [row.key, row.value]

    auth = template.auth
    if isinstance(auth, (BearerAuth, OAuthTokenAuth)):
        fields.append(auth.token)
    elif isinstance(auth, BasicAuth):
        fields += [auth.username, auth.password]
    elif isinstance(auth, ApiKeyAuth):
        fields += [auth.key, auth.value]

    body = template.body
    if isinstance(body, RawBody):
        fields.append(body.content)
    elif isinstance(body, FormUrlEncodedBody):
        for row in body.fields:
            if row.enabled:
                fields += [row.key, row.value]
    elif isinstance(body, MultipartBody):
        for part in body.parts:
            if part.enabled:
                fields.append(part.key)
                if isinstance(part.content, MultipartText):
                    fields.append(part.content.value)
    return fields


class RequestRunner:
    """Assembles, sends and records requests.

    Args:
        transport: Object with ``async execute(ResolvedRequest) -> HTTPResponse``.
            Defaults to a TransportExecutor built on first send.
        history: Optional HistoryRecorder; omit to skip history.
        secrets: Optional SecretResolver for secret-backed variables.
        callbacks: Async ``cb(event, data)`` callables, awaited in order.
    """

    def __init__(
        self,
        transport=None,
        history=None,
        secrets: Optional[SecretResolver] = None,
        callbacks: Optional[list[RunnerCallback]] = None,
        interpolator: Optional[Interpolator] = None,
    ) -> None:
        self.transport = transport
        self.history = history
        self.secrets = secrets
        self.callbacks = list(callbacks or [])
        self.interpolator = interpolator or Interpolator()
        self.assembler = RequestAssembler(self.interpolator)
        self.exporter = CurlExporter(self.interpolator)

    # ── Pure helpers ──

    def variables_for(self, scopes: ScopeSet, include_secrets: bool = True) -> dict[str, str]:
        return scopes.build(self.secrets, include_secrets=include_secrets)

    def resolve(self, template: RequestTemplate, scopes: ScopeSet) -> ResolvedRequest:
        """Assemble without sending. Raises the assembler's typed errors."""
        return self.assembler.assemble(template, self.variables_for(scopes))

    def preview_url(self, template: RequestTemplate, scopes: ScopeSet) -> str:
        """Interpolated URL for display; falls back to the raw URL on failure."""
        try:
            return self.interpolator.interpolate(template.url, self.variables_for(scopes, include_secrets=False))
        except InterpolationError:
            return template.url

    def unresolved_variables(self, template: RequestTemplate, scopes: ScopeSet) -> list[str]:
        """Names referenced anywhere in the template that no scope defines."""
        available = scopes.available_names()
        missing: dict[str, None] = {}
        for text in template_fields(template):
            for name in self.interpolator.find_unresolved(text, available):
                missing.setdefault(name, None)
        return list(missing)

    def curl(self, template: RequestTemplate, scopes: ScopeSet, multiline: bool = True) -> str:
        """cURL command for *template* with secrets left unresolved and auth redacted."""
        return self.exporter.export(template, self.variables_for(scopes, include_secrets=False), multiline)

    # ── Send ──

    async def send(
        self,
        template: RequestTemplate,
        scopes: ScopeSet,
        workspace_id: str = "",
    ) -> SendOutcome:
        """Assemble, execute and record *template*. Never raises PostlineError."""
        try:
            resolved = self.resolve(template, scopes)
        except PostlineError as exc:
            logger.info("Request %s failed to assemble: %s", template.id, exc)
            await self._emit("request_failed", self._event_data(template, None, stage="assembly", error=exc))
            await self._record(template, workspace_id, None)
            return SendOutcome(error=exc)

        await self._emit("request_assembled", self._event_data(template, resolved))

        if self.transport is None:
            from postline.transport.executor import TransportExecutor
            self.transport = TransportExecutor()

        try:
            response = await self.transport.execute(resolved)
        except TransportError as exc:
            logger.info("Request %s failed in transport (%s): %s", template.id, exc.kind, exc)
            await self._emit("request_failed", self._event_data(template, resolved, stage="transport", error=exc))
            await self._record(template, workspace_id, None)
            return SendOutcome(resolved=resolved, error=exc)

        await self._emit("request_completed", {
            **self._event_data(template, resolved),
            "status_code": response.status_code,
            "duration_ms": response.duration_ms,
            "size": response.size,
        })
        await self._record(template, workspace_id, response)
        return SendOutcome(resolved=resolved, response=response)

    async def _record(self, template: RequestTemplate, workspace_id: str, response: Optional[HTTPResponse]) -> None:
        if self.history is None:
            return
        try:
            await self.history.record(
                request_id=template.id,
                request_name=template.name,
                method=template.method.value,
                url=template.url,
                workspace_id=workspace_id,
                response=response,
            )
        except Exception:
            logger.warning("History recording failed for request %s", template.id, exc_info=True)

    async def _emit(self, event: str, data: dict[str, Any]) -> None:
        for cb in self.callbacks:
            try:
                await cb(event, data)
            except Exception:
                logger.warning("Callback %r failed on %s", cb, event, exc_info=True)

    @staticmethod
    def _event_data(
        template: RequestTemplate,
        resolved: Optional[ResolvedRequest],
        stage: Optional[str] = None,
        error: Optional[PostlineError] = None,
    ) -> dict[str, Any]:
        data: dict[str, Any] = {
            "request_id": template.id,
            "request_name": template.name,
            "method": template.method.value,
            "url": redact_url(resolved.url) if resolved else template.url,
        }
        if resolved is not None:
            data["header_count"] = len(resolved.headers)
        if stage is not None:
            data["stage"] = stage
        if error is not None:
            data["error"] = str(error)
            data["error_type"] = type(error).__name__
        return data
