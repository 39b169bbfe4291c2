"""httpx-backed transport. One ResolvedRequest in, one HTTPResponse out.

No retries. The timeout is taken from settings and clamped to a fixed
ceiling. Cancelling the awaiting task cancels the in-flight request.
"""

import logging
import ssl
import time
from typing import Optional

import httpx

from postline.config import PostlineConfig, config as default_config
from postline.exceptions import TransportError
from postline.types import HTTPResponse, ResolvedRequest

logger = logging.getLogger(__name__)


def _classify(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if isinstance(exc, httpx.ConnectError):
        cause = exc.__cause__ or exc.__context__
        if isinstance(cause, ssl.SSLError) or "SSL" in str(exc) or "CERTIFICATE" in str(exc).upper():
            return "tls"
        return "connect"
    if isinstance(exc, (httpx.RemoteProtocolError, httpx.LocalProtocolError, httpx.DecodingError)):
        return "protocol"
    return "network"


class TransportExecutor:
    """Performs the network call for a fully resolved request.

    Args:
        settings: Source of timeout, redirect, TLS and size-limit settings.
        timeout_seconds: Per-request override, still clamped to the ceiling.
        client_kwargs: Extra keyword arguments for ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        settings: Optional[PostlineConfig] = None,
        timeout_seconds: Optional[float] = None,
        follow_redirects: Optional[bool] = None,
        verify_ssl: Optional[bool] = None,
        client_kwargs: Optional[dict] = None,
    ) -> None:
        cfg = settings or default_config
        requested = timeout_seconds if timeout_seconds is not None else cfg.request_timeout_seconds
        self.timeout_seconds = min(requested, cfg.request_timeout_ceiling_seconds)
        self.follow_redirects = cfg.follow_redirects if follow_redirects is None else follow_redirects
        self.verify_ssl = cfg.verify_ssl if verify_ssl is None else verify_ssl
        self.size_limit_bytes = cfg.response_size_limit_kb * 1024
        self._client_kwargs = client_kwargs or {}

    async def execute(self, resolved: ResolvedRequest) -> HTTPResponse:
        """Send *resolved* and return the full response.

        Raises:
            TransportError: DNS/connect, TLS, timeout, protocol failure (including
                headers httpx cannot encode), or a response larger than the
                configured size limit.
        """
        client_kwargs = {
            "timeout": self.timeout_seconds,
            "verify": self.verify_ssl,
            "follow_redirects": self.follow_redirects,
            **self._client_kwargs,
        }
        logger.debug("Sending %s to %s", resolved.method.value, httpx.URL(resolved.url).host)

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                async with client.stream(
                    resolved.method.value,
                    resolved.url,
                    headers=resolved.wire_headers(),
                    content=resolved.body,
                ) as response:
                    content = b""
                    async for chunk in response.aiter_bytes(8192):
                        content += chunk
                        if len(content) > self.size_limit_bytes:
                            raise TransportError(
                                f"Response exceeds size limit of {self.size_limit_bytes} bytes",
                                kind="too_large",
                            )
        except httpx.HTTPError as exc:
            kind = _classify(exc)
            raise TransportError(f"{kind} error: {str(exc) or type(exc).__name__}", kind=kind) from exc
        except UnicodeEncodeError as exc:
            # httpx encodes str headers as ASCII
            raise TransportError(f"protocol error: cannot encode request: {exc.reason}", kind="protocol") from exc
        duration_ms = int((time.monotonic() - start) * 1000)

        return HTTPResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            headers=list(response.headers.multi_items()),
            body=content,
            duration_ms=duration_ms,
            size=len(content),
            url=str(response.url),
        )
