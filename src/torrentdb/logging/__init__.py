"""Structured logging utilities."""

from .events import EventSink, JsonlEventLogger, NullEventLogger, RunEvent, utc_timestamp

__all__ = ["EventSink", "JsonlEventLogger", "NullEventLogger", "RunEvent", "utc_timestamp"]
