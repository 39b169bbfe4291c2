"""Network transport: sends ResolvedRequests over httpx."""

from postline.transport.executor import TransportExecutor

__all__ = ["TransportExecutor"]
