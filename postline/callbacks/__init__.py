"""Lifecycle hooks for the request runner."""

from postline.callbacks.base import RunnerCallback
from postline.callbacks.logging import LoggingCallback

__all__ = ["RunnerCallback", "LoggingCallback"]
