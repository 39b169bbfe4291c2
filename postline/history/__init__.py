"""Request history: one entry per send, successful or not."""

from postline.history.recorder import HistoryRecorder

__all__ = ["HistoryRecorder"]
