"""Base callback protocol for request lifecycle hooks.

The runner awaits every registered callback as ``await cb(event, data)``
after each stage. Events:

    request_assembled   template resolved; data has method, url, header_count
    request_completed   response received; data adds status_code, duration_ms, size
    request_failed      assembly or transport failed; data adds error, error_type

``data`` never carries header values, bodies, or resolved secrets.

Usage:
    async def print_status(event: str, data: dict) -> None:
        if event == "request_completed":
            print(data["status_code"])

    runner = RequestRunner(..., callbacks=[print_status])
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RunnerCallback(Protocol):
    """Anything awaitable as ``cb(event, data)``."""

    async def __call__(self, event: str, data: dict[str, Any]) -> None:
        ...
